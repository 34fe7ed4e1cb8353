"""
Registry of collections that opt into the kanban board.

Registering a collection installs SQLAlchemy mapper events on its model so
that every write validates the status and assigns an initial rank to records
entering a column for the first time.
"""
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional

from flask import current_app, has_app_context
from sqlalchemy import event, select

from kanban.board.engine import ReorderEngine
from kanban.board.statuses import StatusVocabulary
from kanban.logging_config import get_logger, log_rank_assignment

logger = get_logger(__name__)

EXTENSION_KEY = "kanban"


@dataclass
class CollectionConfig:
    """Board settings for one collection."""
    slug: str
    model: Any
    vocabulary: StatusVocabulary
    field_access: Mapping[str, Callable[..., bool]] = field(default_factory=dict)

    @classmethod
    def build(cls, slug: str, model, statuses: Iterable, default_status: Optional[str] = None,
              hide_no_status_column: bool = False,
              field_access: Optional[Mapping[str, Callable[..., bool]]] = None) -> "CollectionConfig":
        vocabulary = StatusVocabulary.build(statuses, default_status, hide_no_status_column)
        return cls(slug=slug, model=model, vocabulary=vocabulary, field_access=field_access or {})

    def can_update_status(self, user) -> bool:
        """Whether ``user`` may drag cards (update access on the status field)."""
        predicate = self.field_access.get('update')
        if predicate is not None:
            return bool(predicate(user=user))
        if user is None:
            return False
        return bool(getattr(user, 'can_reorder', True))

    def can_read_status(self, user) -> bool:
        predicate = self.field_access.get('read')
        if predicate is not None:
            return bool(predicate(user=user))
        return user is not None

    def to_dict(self, language: str = "en") -> dict:
        return {
            'slug': self.slug,
            'statuses': self.vocabulary.to_list(language),
            'default_status': self.vocabulary.default_status,
            'hide_no_status_column': self.vocabulary.hide_no_status_column,
        }


class KanbanRegistry:
    def __init__(self):
        self._collections: Dict[str, CollectionConfig] = {}
        self._by_model: Dict[type, CollectionConfig] = {}

    def register(self, config: CollectionConfig) -> CollectionConfig:
        if config.slug in self._collections:
            raise ValueError(f"Collection '{config.slug}' is already registered")
        if config.model in self._by_model:
            raise ValueError(f"Model {config.model.__name__} already backs collection "
                             f"'{self._by_model[config.model].slug}'")
        self._collections[config.slug] = config
        self._by_model[config.model] = config
        _install_model_events(config.model)
        logger.info("Kanban collection registered", collection=config.slug,
                    statuses=list(config.vocabulary.values))
        return config

    def get(self, slug: str) -> Optional[CollectionConfig]:
        return self._collections.get(slug)

    def for_model(self, model) -> Optional[CollectionConfig]:
        return self._by_model.get(model)

    def all(self) -> List[CollectionConfig]:
        return list(self._collections.values())


def init_kanban(app, configs: Iterable[CollectionConfig]) -> KanbanRegistry:
    """Attach a registry holding ``configs`` to the Flask app."""
    registry = KanbanRegistry()
    for config in configs:
        registry.register(config)
    app.extensions[EXTENSION_KEY] = registry
    return registry


def get_registry(app=None) -> KanbanRegistry:
    if app is None:
        app = current_app
    return app.extensions[EXTENSION_KEY]


# ---- mapper events ----

def last_rank_for_status(connection, model, status: str) -> Optional[str]:
    """Highest rank among rows sharing ``status`` (ignores unranked rows)."""
    table = model.__table__
    stmt = (
        select(table.c.kanban_order_rank)
        .where(table.c.kanban_status == status)
        .where(table.c.kanban_order_rank.isnot(None))
        .order_by(table.c.kanban_order_rank.desc())
        .limit(1)
    )
    return connection.execute(stmt).scalar()


def config_for_model(model) -> Optional[CollectionConfig]:
    """Config of ``model`` in the active app's registry.

    Each app keeps its own registry, so two apps in one process may register
    the same model with different vocabularies. Writes made outside an app
    context, or in an app without the board, get None and are left alone.
    """
    if not has_app_context():
        return None
    registry = current_app.extensions.get(EXTENSION_KEY)
    if registry is None:
        return None
    return registry.for_model(model)


def _prepare_kanban_fields(mapper, connection, target, is_insert: bool) -> None:
    config = config_for_model(mapper.class_)
    if config is None:
        return
    vocabulary = config.vocabulary

    if is_insert and target.kanban_status is None and vocabulary.default_status:
        target.kanban_status = vocabulary.default_status

    target.kanban_status = vocabulary.validate_status(target.kanban_status)

    if target.kanban_status is None or target.kanban_order_rank:
        return

    last_rank = last_rank_for_status(connection, mapper.class_, target.kanban_status)
    target.kanban_order_rank = ReorderEngine.initial_rank(
        target.kanban_status, target.kanban_order_rank, last_rank
    )
    log_rank_assignment(
        config.slug,
        status=target.kanban_status,
        last_rank=last_rank,
        rank=target.kanban_order_rank,
    )


def _before_insert(mapper, connection, target):
    _prepare_kanban_fields(mapper, connection, target, is_insert=True)


def _before_update(mapper, connection, target):
    _prepare_kanban_fields(mapper, connection, target, is_insert=False)


def _install_model_events(model) -> None:
    if not event.contains(model, 'before_insert', _before_insert):
        event.listen(model, 'before_insert', _before_insert)
    if not event.contains(model, 'before_update', _before_update):
        event.listen(model, 'before_update', _before_update)
