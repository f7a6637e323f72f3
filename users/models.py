# users/models.py
from django.contrib.auth.models import AbstractUser
from django.db import models


class User(AbstractUser):
    ROLE_DONOR = "donor"
    ROLE_STAFF = "staff"
    ROLE_ADMIN = "admin"

    ROLE_CHOICES = (
        (ROLE_DONOR, "Donor"),
        (ROLE_STAFF, "Staff"),
        (ROLE_ADMIN, "Admin"),
    )

    role = models.CharField(
        max_length=30,
        choices=ROLE_CHOICES,
        default=ROLE_DONOR
    )

    def __str__(self):
        return self.username
