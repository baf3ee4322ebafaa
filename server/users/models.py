from django.contrib.auth.models import AbstractUser
from django.db import models
from django.utils import timezone

from utils.permissions import is_content_admin as _is_content_admin


class User(AbstractUser):
    name = models.CharField(max_length=150, blank=True)
    avatar = models.URLField(blank=True, null=True)
    last_active = models.DateTimeField(default=timezone.now)

    @property
    def is_content_admin(self):
        return _is_content_admin(self)

    def touch(self):
        self.last_active = timezone.now()
        self.save(update_fields=["last_active"])
