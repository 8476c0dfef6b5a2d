from django.conf import settings
from django.db import models


class Message(models.Model):
    """A message between two users about a listing"""
    sender = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='sent_messages')
    receiver = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='received_messages')
    listing = models.ForeignKey('listings.CarListing', on_delete=models.CASCADE, related_name='messages')
    content = models.TextField()
    read = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"Message {self.id} from {self.sender_id} to {self.receiver_id}"

    def counterparty_id(self, user_id):
        """Identifier of the participant who is not ``user_id``"""
        return self.receiver_id if self.sender_id == user_id else self.sender_id

    def counterparty(self, user_id):
        return self.receiver if self.sender_id == user_id else self.sender

    class Meta:
        db_table = 'messages'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['receiver', 'read'], name='messages_receive_1a2b3c_idx'),
            models.Index(fields=['sender', 'receiver'], name='messages_sender__4d5e6f_idx'),
            models.Index(fields=['-created_at'], name='messages_created_7a8b9c_idx'),
        ]
