"""
Change feed for the posts table.

Every committed insert, update or delete of a Post sends ``posts_changed``
with ``event`` set to INSERT, UPDATE or DELETE. Receivers should treat the
event as a refresh trigger only.
"""
from django.db import transaction
from django.db.models.signals import post_delete, post_save
from django.dispatch import Signal, receiver

from .models import Post

INSERT = "INSERT"
UPDATE = "UPDATE"
DELETE = "DELETE"

posts_changed = Signal()


def _broadcast(event, post_id):
    transaction.on_commit(
        lambda: posts_changed.send(sender=Post, event=event, post_id=str(post_id))
    )


@receiver(post_save, sender=Post, dispatch_uid="community_blog_post_saved")
def post_saved(sender, instance, created, **kwargs):
    _broadcast(INSERT if created else UPDATE, instance.pk)


@receiver(post_delete, sender=Post, dispatch_uid="community_blog_post_deleted")
def post_deleted(sender, instance, **kwargs):
    _broadcast(DELETE, instance.pk)
