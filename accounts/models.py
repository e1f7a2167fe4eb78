from django.contrib.auth.models import AbstractUser, BaseUserManager
from django.db import models


def unique_username(model, email):
    """Build a free username from the local part of an email address."""
    base = email.split('@')[0]
    username = base
    counter = 1
    while model.objects.filter(username=username).exists():
        username = f"{base}_{counter}"
        counter += 1
    return username


class UserManager(BaseUserManager):
    def create_user(self, email, password=None, **extra_fields):
        if not email:
            raise ValueError('The Email field must be set')
        email = self.normalize_email(email)
        extra_fields.setdefault('username', unique_username(self.model, email))
        user = self.model(email=email, **extra_fields)
        user.set_password(password)
        user.save(using=self._db)
        return user

    def create_superuser(self, email, password=None, **extra_fields):
        extra_fields.setdefault('is_staff', True)
        extra_fields.setdefault('is_superuser', True)
        extra_fields.setdefault('is_active', True)

        if extra_fields.get('is_staff') is not True:
            raise ValueError('Superuser must have is_staff=True.')
        if extra_fields.get('is_superuser') is not True:
            raise ValueError('Superuser must have is_superuser=True.')

        return self.create_user(email, password, **extra_fields)


class User(AbstractUser):
    # Username is auto-filled from the email; people sign in with their email
    username = models.CharField(max_length=150, unique=True, blank=True)
    email = models.EmailField(unique=True)

    USERNAME_FIELD = 'email'
    REQUIRED_FIELDS = ['first_name', 'last_name']

    objects = UserManager()

    def __str__(self):
        return self.email

    @property
    def ref(self):
        """Identifier stamped on listings this user owns."""
        return str(self.pk)

    def save(self, *args, **kwargs):
        if not self.username and self.email:
            self.username = unique_username(User, self.email)
        super().save(*args, **kwargs)
