from django.db import models


class SystemSetting(models.Model):
    """
    Simple key/value settings store, read at request time by the scheduler.
    Known keys:
      - SLOT_INTERVAL_MINUTES (e.g., '15')
      - DEFAULT_WORK_START (e.g., '09:00')
      - DEFAULT_WORK_END (e.g., '18:00')
    """
    key = models.CharField(max_length=100, unique=True)
    value = models.CharField(max_length=200)

    def __str__(self):
        return f"{self.key}={self.value}"
