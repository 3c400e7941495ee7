from django.contrib.auth.models import AbstractUser
from django.db import models
from django.db.models import CharField
from django.db.models import EmailField
from django.utils.translation import gettext_lazy as _


class User(AbstractUser):
    """
    Default custom user model for eventfi.

    `display_name` and `avatar` are the public profile fields shown next to
    chat messages and in member lists.
    """

    email = EmailField(_("email address"), unique=True)
    display_name = CharField(_("Display Name"), blank=True, max_length=255)
    avatar = models.URLField(_("Avatar"), blank=True, max_length=500)
    bio = models.TextField(_("Bio"), blank=True)
    # Audit timestamps
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def save(self, *args, **kwargs):
        # Fall back to the full name when no display name was chosen
        if not self.display_name:
            self.display_name = f"{self.first_name} {self.last_name}".strip()
        super().save(*args, **kwargs)
