from trilhas.models import ContentItem
from utils.permissions import is_content_admin


def can_see_drafts(user) -> bool:
    return is_content_admin(user)


def visible_items(user=None, *, include_drafts=None):
    """
    Items the requester may traverse. Administrators see drafts, everyone
    else only published items. `include_drafts` overrides the user check.
    """
    if include_drafts is None:
        include_drafts = can_see_drafts(user)
    qs = ContentItem.objects.all()
    if not include_drafts:
        qs = qs.filter(status=ContentItem.Status.PUBLISHED)
    return qs


def is_visible(item, user=None, *, include_drafts=None) -> bool:
    if item is None:
        return False
    if include_drafts is None:
        include_drafts = can_see_drafts(user)
    return include_drafts or item.is_published

