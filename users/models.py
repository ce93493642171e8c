from django.db import models
from django.contrib.auth.models import User
from django.db.models.signals import post_save
from django.dispatch import receiver


class Profile(models.Model):
    ROLE_CHOICES = [
        ("admin", "Admin"),
        ("user", "User"),
    ]

    user = models.OneToOneField(User, on_delete=models.CASCADE)
    full_name = models.CharField(max_length=100, blank=True, default="")
    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default="user")

    def __str__(self):
        return f"{self.user.username} - {self.role}"


def display_name(user):
    """Name shown next to records a user owns (products, orders)."""
    profile = getattr(user, 'profile', None)
    if profile is not None and profile.full_name:
        return profile.full_name
    return user.get_full_name() or user.username


# SIGNALS: auto-create Profile for new users
@receiver(post_save, sender=User)
def create_user_profile(sender, instance, created, **kwargs):
    if created:
        Profile.objects.create(user=instance, full_name=instance.get_full_name())

@receiver(post_save, sender=User)
def save_user_profile(sender, instance, **kwargs):
    # ensures the profile is saved whenever the user is saved
    if hasattr(instance, 'profile'):
        instance.profile.save()
