from django.db import models
from django.utils import timezone


class AllowedEmailQuerySet(models.QuerySet):
    def is_allowed(self, email: str) -> bool:
        email = (email or '').strip()
        return bool(email) and self.filter(email__iexact=email).exists()


class AllowedEmail(models.Model):
    """E-mail addresses allowed to sign in. Matching ignores case."""
    email = models.EmailField(unique=True)
    note = models.CharField(max_length=120, blank=True, default='')
    created_at = models.DateTimeField(default=timezone.now)

    objects = AllowedEmailQuerySet.as_manager()

    class Meta:
        ordering = ['email']

    def __str__(self):
        return self.email

    def save(self, *args, **kwargs):
        self.email = (self.email or '').strip().lower()
        super().save(*args, **kwargs)
