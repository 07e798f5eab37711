import logging

from core.exceptions import ValidationFailed
from .models import UserStatus

logger = logging.getLogger(__name__)


def delete_user(principal, user):
    if user.pk == principal.pk:
        raise ValidationFailed({'id': ['You cannot delete your own account']})
    user_id = user.pk
    user.delete()
    logger.info(f"User {user_id} deleted by {principal.pk}")


def toggle_status(principal, user):
    if user.pk == principal.pk:
        raise ValidationFailed({'id': ['You cannot deactivate your own account']})
    user.status = UserStatus.INACTIVE if user.status == UserStatus.ACTIVE else UserStatus.ACTIVE
    user.save(update_fields=['status', 'updated_at'])
    logger.info(f"User {user.pk} set to {user.status} by {principal.pk}")
    return user


def update_user(principal, user, data):
    """Partial update; the password is re-hashed only when supplied."""
    data = dict(data)
    if user.pk == principal.pk and data.get('status') == UserStatus.INACTIVE:
        raise ValidationFailed({'status': ['You cannot deactivate your own account']})

    password = data.pop('password', None)
    for attr, value in data.items():
        setattr(user, attr, value)
    if password:
        user.set_password(password)
    user.save()
    logger.info(f"User {user.pk} updated by {principal.pk}")
    return user
