"""Collections shown on the board in this deployment."""
from kanban.board.registry import CollectionConfig
from kanban.board.results import DropValidation
from kanban.models import Post


def draft_requires_title(data, user):
    """Only posts with a title may be dropped back into Draft."""
    if data.get('title'):
        return DropValidation(drop_able=True, message="Data Updated")
    return DropValidation(drop_able=False, message="You are not authorised for this action")


def build_collections(app):
    """Board configs for the app; column visibility comes from the app config."""
    return [
        CollectionConfig.build(
            slug="posts",
            model=Post,
            statuses=[
                {'value': 'draft', 'label': 'Draft', 'drop_validation': draft_requires_title},
                {'value': 'in-progress', 'label': 'In Progress'},
                {'value': 'ready-for-review', 'label': {'en': 'Ready for review', 'nl': 'Klaar voor review'}},
                {'value': 'published', 'label': 'Published'},
            ],
            hide_no_status_column=app.config.get('KANBAN_HIDE_NO_STATUS_COLUMN', False),
        ),
    ]
