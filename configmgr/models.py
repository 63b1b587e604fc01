from django.db import models


class SystemSetting(models.Model):
    """
    Runtime overrides editable in the admin.
    Keys read by the scheduler:
      - BUSINESS_OPEN (HH:mm, e.g. '08:00')
      - BUSINESS_CLOSE (HH:mm, e.g. '18:00')
    Anything not set here falls back to settings.SCHEDULING.
    """
    BUSINESS_OPEN = "BUSINESS_OPEN"
    BUSINESS_CLOSE = "BUSINESS_CLOSE"

    key = models.CharField(max_length=100, unique=True)
    value = models.CharField(max_length=200)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["key"]

    def __str__(self):
        return f"{self.key}={self.value}"

    @classmethod
    def get_value(cls, key, default=None):
        row = cls.objects.filter(key=key).only("value").first()
        return row.value if row else default
