from django.db import models
from django.contrib.auth.models import User


class StoredDocument(models.Model):
    """A serialized value of a user's local repository, addressed by key."""

    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='stored_documents')
    key = models.CharField(max_length=200)
    value = models.TextField(help_text="JSON encoded value")
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['key']
        constraints = [
            models.UniqueConstraint(fields=['user', 'key'], name='unique_document_key_per_user'),
        ]

    def __str__(self):
        return f"{self.user.username}: {self.key}"
