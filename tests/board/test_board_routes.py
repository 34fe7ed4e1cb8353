"""
Tests for the kanban board routes (Flask endpoints).
These tests verify HTTP request/response handling, authentication, and route logic.
"""
import pytest
from kanban import create_app
from kanban.exceptions import GENERIC_AUTHORIZATION_MESSAGE, GENERIC_FAILURE_MESSAGE
from kanban.models import Post, User, db


def make_app(**overrides):
    config = {
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SECRET_KEY': 'test-secret-key',
    }
    config.update(overrides)
    return create_app(config)


@pytest.fixture
def app():
    """Create Flask application for testing."""
    app = make_app()

    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def admin_user(app):
    user = User(username="test_admin", is_admin=True)
    db.session.add(user)
    db.session.commit()
    return user


@pytest.fixture
def client(app, admin_user):
    """Test client with a logged-in session."""
    client = app.test_client()
    with client.session_transaction() as sess:
        sess['user_id'] = admin_user.id
    return client


@pytest.fixture
def anonymous_client(app):
    return app.test_client()


@pytest.fixture
def posts(app):
    """One draft, one post without status, one published post and one untitled post in progress."""
    draft = Post(title="Draft post", kanban_status="draft")
    loose = Post(title="Loose post")
    published = Post(title="Published post", kanban_status="published")
    untitled = Post(title=None, kanban_status="in-progress")
    db.session.add_all([draft, loose, published, untitled])
    db.session.commit()
    return {'draft': draft, 'loose': loose, 'published': published, 'untitled': untitled}


def drag_payload(post, source, destination=None):
    payload = {
        'draggableId': str(post.id),
        'source': {'droppableId': source[0], 'index': source[1]},
        'destination': None,
    }
    if destination:
        payload['destination'] = {'droppableId': destination[0], 'index': destination[1]}
    return payload


# ==============================================================================
# AUTHENTICATION TESTS
# ==============================================================================

class TestAuthentication:
    """Tests for the login requirement on every board route."""

    def test_health_is_public(self, anonymous_client):
        """Test the health endpoint."""
        response = anonymous_client.get('/health')
        assert response.status_code == 200
        assert response.get_json() == {"status": "ok"}

    @pytest.mark.parametrize("method,url", [
        ("get", "/kanban/collections"),
        ("get", "/kanban/posts/board"),
        ("post", "/kanban/posts/reorder"),
        ("patch", "/kanban/posts/1"),
    ])
    def test_requires_login(self, anonymous_client, method, url):
        """Test that anonymous requests get 401."""
        response = getattr(anonymous_client, method)(url, json={})
        assert response.status_code == 401
        assert response.get_json()['error'] == 'Authentication required'

    def test_inactive_user_is_anonymous(self, app, admin_user, client):
        """Test that a deactivated account cannot use the board."""
        admin_user.is_active = False
        db.session.commit()
        response = client.get('/kanban/collections')
        assert response.status_code == 401


# ==============================================================================
# COLLECTIONS & BOARD TESTS
# ==============================================================================

class TestListCollections:
    """Tests for GET /kanban/collections"""

    def test_lists_posts_collection(self, client):
        """Test that registered collections are listed with their columns."""
        response = client.get('/kanban/collections')
        assert response.status_code == 200
        collections = response.get_json()['collections']
        assert [c['slug'] for c in collections] == ['posts']
        values = [s['value'] for s in collections[0]['statuses']]
        assert values == ['draft', 'in-progress', 'ready-for-review', 'published']
        assert collections[0]['statuses'][0]['has_drop_validation'] is True

    def test_translated_labels(self, client):
        """Test that the lang parameter picks translated labels."""
        response = client.get('/kanban/collections?lang=nl')
        statuses = response.get_json()['collections'][0]['statuses']
        labels = {s['value']: s['label'] for s in statuses}
        assert labels['ready-for-review'] == 'Klaar voor review'
        assert labels['draft'] == 'Draft'


class TestGetBoard:
    """Tests for GET /kanban/<slug>/board"""

    def test_board_columns(self, client, posts):
        """Test that records are grouped into columns, no-status column first."""
        response = client.get('/kanban/posts/board')
        assert response.status_code == 200
        data = response.get_json()

        assert data['collection'] == 'posts'
        assert data['drag_enabled'] is True
        columns = {c['value']: c for c in data['columns']}
        assert [c['value'] for c in data['columns']] == [
            'null', 'draft', 'in-progress', 'ready-for-review', 'published'
        ]
        assert columns['null']['label'] == 'No status'
        assert [i['id'] for i in columns['null']['items']] == [posts['loose'].id]
        assert [i['id'] for i in columns['draft']['items']] == [posts['draft'].id]
        assert columns['draft']['items'][0]['kanban_order_rank'] == "0|100008:"
        assert columns['ready-for-review']['items'] == []

    def test_board_items_sorted_by_rank(self, client, posts):
        """Test that a column lists its cards in rank order, not insert order."""
        second = Post(title="Second draft", kanban_status="draft")
        db.session.add(second)
        db.session.commit()
        second.kanban_order_rank = "0|000100:"
        db.session.commit()

        response = client.get('/kanban/posts/board')
        columns = {c['value']: c for c in response.get_json()['columns']}
        assert [i['id'] for i in columns['draft']['items']] == [second.id, posts['draft'].id]

    def test_board_limit(self, client, posts):
        """Test that the limit parameter caps the records loaded."""
        response = client.get('/kanban/posts/board?limit=1')
        items = [i for c in response.get_json()['columns'] for i in c['items']]
        assert [i['id'] for i in items] == [posts['draft'].id]

    def test_drag_disabled_for_user_without_permission(self, client, admin_user):
        """Test that drag_enabled follows the user's update permission."""
        admin_user.can_reorder = False
        db.session.commit()
        response = client.get('/kanban/posts/board')
        assert response.get_json()['drag_enabled'] is False

    def test_unknown_collection(self, client):
        """Test 404 for a collection that is not registered."""
        response = client.get('/kanban/unknown/board')
        assert response.status_code == 404

    def test_hidden_no_status_column(self):
        """Test that the no-status column can be hidden through config."""
        app = make_app(KANBAN_HIDE_NO_STATUS_COLUMN=True)
        with app.app_context():
            db.create_all()
            user = User(username="viewer")
            db.session.add(user)
            db.session.commit()

            client = app.test_client()
            with client.session_transaction() as sess:
                sess['user_id'] = user.id

            response = client.get('/kanban/posts/board')
            values = [c['value'] for c in response.get_json()['columns']]
            assert values[0] == 'draft'
            assert 'null' not in values

            db.session.remove()
            db.drop_all()


# ==============================================================================
# REORDER TESTS
# ==============================================================================

class TestReorder:
    """Tests for POST /kanban/<slug>/reorder"""

    def test_accepted_move_is_persisted(self, client, posts):
        """Test moving a published post below the existing draft."""
        published = posts['published']
        response = client.post('/kanban/posts/reorder',
                               json=drag_payload(published, ('published', 0), ('draft', 1)))

        assert response.status_code == 200
        data = response.get_json()
        assert data['outcome'] == 'accepted'
        assert data['drop_able'] is True
        assert data['new_status'] == 'draft'
        assert data['new_rank'] == '0|10000g:'
        assert data['message'] == 'Data Updated'

        record = db.session.get(Post, published.id)
        assert record.kanban_status == 'draft'
        assert record.kanban_order_rank == '0|10000g:'

    def test_move_to_no_status_column(self, client, posts):
        """Test that the "null" column clears the status."""
        published = posts['published']
        response = client.post('/kanban/posts/reorder',
                               json=drag_payload(published, ('published', 0), ('null', 1)))

        assert response.status_code == 200
        assert response.get_json()['new_status'] is None
        assert db.session.get(Post, published.id).kanban_status is None

    def test_drop_validation_rejects(self, client, posts):
        """Test that untitled posts cannot be dropped into Draft."""
        untitled = posts['untitled']
        response = client.post('/kanban/posts/reorder',
                               json=drag_payload(untitled, ('in-progress', 0), ('draft', 0)))

        assert response.status_code == 403
        data = response.get_json()
        assert data['outcome'] == 'rejected'
        assert data['drop_able'] is False
        assert data['message'] == 'You are not authorised for this action'
        assert db.session.get(Post, untitled.id).kanban_status == 'in-progress'

    def test_user_without_permission_is_rejected(self, client, admin_user, posts):
        """Test that users who may not reorder get the generic message."""
        admin_user.can_reorder = False
        db.session.commit()
        response = client.post('/kanban/posts/reorder',
                               json=drag_payload(posts['published'], ('published', 0), ('draft', 0)))
        assert response.status_code == 403
        assert response.get_json()['message'] == GENERIC_AUTHORIZATION_MESSAGE

    def test_no_destination_is_noop(self, client, posts):
        """Test that dropping outside the board changes nothing."""
        response = client.post('/kanban/posts/reorder',
                               json=drag_payload(posts['draft'], ('draft', 0)))
        assert response.status_code == 200
        assert response.get_json()['outcome'] == 'noop'

    def test_same_position_is_noop(self, client, posts):
        """Test that dropping a card where it started changes nothing."""
        response = client.post('/kanban/posts/reorder',
                               json=drag_payload(posts['draft'], ('draft', 0), ('draft', 0)))
        assert response.status_code == 200
        assert response.get_json()['outcome'] == 'noop'
        assert db.session.get(Post, posts['draft'].id).kanban_order_rank == "0|100008:"

    def test_corrupt_rank_fails(self, client, posts):
        """Test that a corrupt neighbour rank fails with the generic message."""
        db.session.execute(
            Post.__table__.update()
            .where(Post.__table__.c.id == posts['draft'].id)
            .values(kanban_order_rank='garbage')
        )
        db.session.commit()

        response = client.post('/kanban/posts/reorder',
                               json=drag_payload(posts['published'], ('published', 0), ('draft', 0)))
        assert response.status_code == 500
        data = response.get_json()
        assert data['outcome'] == 'failed'
        assert data['message'] == GENERIC_FAILURE_MESSAGE

    def test_unknown_destination_status(self, client, posts):
        """Test that a column outside the vocabulary is a bad request."""
        response = client.post('/kanban/posts/reorder',
                               json=drag_payload(posts['published'], ('published', 0), ('archived', 0)))
        assert response.status_code == 400
        assert db.session.get(Post, posts['published'].id).kanban_status == 'published'

    @pytest.mark.parametrize("payload", [
        {},
        {'draggableId': '1'},
        {'source': {'droppableId': 'draft', 'index': 0}},
    ])
    def test_invalid_payload(self, client, posts, payload):
        """Test that incomplete drag results are a bad request."""
        response = client.post('/kanban/posts/reorder', json=payload)
        assert response.status_code == 400
        assert 'error' in response.get_json()

    def test_unknown_collection(self, client):
        """Test 404 for a collection that is not registered."""
        response = client.post('/kanban/unknown/reorder', json={})
        assert response.status_code == 404


# ==============================================================================
# REORDER SNAPSHOT LIMIT TESTS
# ==============================================================================

@pytest.fixture
def small_limit_app():
    """App whose default snapshot holds only three records."""
    app = make_app(KANBAN_DEFAULT_LIMIT=3)

    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def small_limit_client(small_limit_app):
    user = User(username="test_admin", is_admin=True)
    db.session.add(user)
    db.session.commit()

    client = small_limit_app.test_client()
    with client.session_transaction() as sess:
        sess['user_id'] = user.id
    return client


@pytest.fixture
def crowded_posts(small_limit_app):
    """Three drafts filling the default snapshot, then two published posts past it."""
    drafts = [Post(title=f"Draft {n}", kanban_status="draft") for n in range(1, 4)]
    published = [Post(title=f"Published {n}", kanban_status="published") for n in range(1, 3)]
    db.session.add_all(drafts + published)
    db.session.commit()
    return drafts, published


def published_order():
    return [post.id for post in
            Post.query.filter_by(kanban_status='published').order_by(Post.kanban_order_rank).all()]


class TestReorderSnapshotLimit:
    """Tests that a reorder sees the same records as the board the client loaded."""

    def test_board_reports_its_limit(self, small_limit_client, crowded_posts):
        """Test that the board echoes the limit it was built with."""
        _, (p1, p2) = crowded_posts
        response = small_limit_client.get('/kanban/posts/board?limit=10')
        data = response.get_json()
        assert data['limit'] == 10
        columns = {c['value']: c for c in data['columns']}
        assert [i['id'] for i in columns['published']['items']] == [p1.id, p2.id]

        assert small_limit_client.get('/kanban/posts/board').get_json()['limit'] == 3

    def test_reorder_uses_query_limit(self, small_limit_client, crowded_posts):
        """Test that ?limit= on the reorder drops the card between the cards the board showed."""
        (d1, _, _), (p1, p2) = crowded_posts
        response = small_limit_client.post('/kanban/posts/reorder?limit=10',
                                           json=drag_payload(d1, ('draft', 0), ('published', 1)))

        assert response.status_code == 200
        assert response.get_json()['new_rank'] == '0|10000g:'
        assert published_order() == [p1.id, d1.id, p2.id]

    def test_reorder_uses_body_limit(self, small_limit_client, crowded_posts):
        """Test that a "limit" field in the drag result works like the query parameter."""
        (d1, _, _), (p1, p2) = crowded_posts
        payload = drag_payload(d1, ('draft', 0), ('published', 1))
        payload['limit'] = 10
        response = small_limit_client.post('/kanban/posts/reorder', json=payload)

        assert response.status_code == 200
        assert published_order() == [p1.id, d1.id, p2.id]


# ==============================================================================
# UPDATE KANBAN FIELDS TESTS
# ==============================================================================

class TestUpdateKanbanFields:
    """Tests for PATCH /kanban/<slug>/<id>"""

    def test_set_status_assigns_rank(self, client, posts):
        """Test that a record entering a column is ranked after its last card."""
        loose = posts['loose']
        response = client.patch(f'/kanban/posts/{loose.id}', json={'kanban_status': 'published'})

        assert response.status_code == 200
        data = response.get_json()
        assert data['success'] is True
        assert data['kanban_status'] == 'published'
        assert data['kanban_order_rank'] == '0|10000o:'

    def test_null_clears_status(self, client, posts):
        """Test that "null" moves the record to the no-status column."""
        draft = posts['draft']
        response = client.patch(f'/kanban/posts/{draft.id}', json={'kanban_status': 'null'})

        assert response.status_code == 200
        assert response.get_json()['kanban_status'] is None
        assert db.session.get(Post, draft.id).kanban_status is None

    def test_set_rank(self, client, posts):
        """Test that a valid rank is stored."""
        draft = posts['draft']
        response = client.patch(f'/kanban/posts/{draft.id}', json={'kanban_order_rank': '0|m00000:'})
        assert response.status_code == 200
        assert db.session.get(Post, draft.id).kanban_order_rank == '0|m00000:'

    def test_invalid_status(self, client, posts):
        """Test 400 for a status outside the vocabulary."""
        response = client.patch(f"/kanban/posts/{posts['draft'].id}", json={'kanban_status': 'archived'})
        assert response.status_code == 400
        assert db.session.get(Post, posts['draft'].id).kanban_status == 'draft'

    def test_drop_validation_denies(self, client, posts):
        """Test 401 when the destination column refuses the record."""
        response = client.patch(f"/kanban/posts/{posts['untitled'].id}", json={'kanban_status': 'draft'})
        assert response.status_code == 401
        assert response.get_json()['error'] == 'Access not granted'

    def test_malformed_rank(self, client, posts):
        """Test 400 for a rank that is not a valid key."""
        response = client.patch(f"/kanban/posts/{posts['draft'].id}", json={'kanban_order_rank': 'm'})
        assert response.status_code == 400
        assert db.session.get(Post, posts['draft'].id).kanban_order_rank == '0|100008:'

    def test_missing_fields(self, client, posts):
        """Test 400 when neither field is present."""
        response = client.patch(f"/kanban/posts/{posts['draft'].id}", json={'title': 'x'})
        assert response.status_code == 400

    def test_status_change_needs_permission(self, client, admin_user, posts):
        """Test 403 for users without update access on the status."""
        admin_user.can_reorder = False
        db.session.commit()
        response = client.patch(f"/kanban/posts/{posts['draft'].id}", json={'kanban_status': 'published'})
        assert response.status_code == 403

    @pytest.mark.parametrize("record_id", ["999", "abc"])
    def test_record_not_found(self, client, posts, record_id):
        """Test 404 for ids that do not exist."""
        response = client.patch(f'/kanban/posts/{record_id}', json={'kanban_status': 'draft'})
        assert response.status_code == 404

    def test_resending_current_status_with_rank(self, client, posts):
        """Test that moving a card inside its own column is not refused by the column's drop rule."""
        untitled = Post(title=None, kanban_status="draft")
        db.session.add(untitled)
        db.session.commit()

        response = client.patch(f"/kanban/posts/{untitled.id}",
                                json={'kanban_status': 'draft', 'kanban_order_rank': '0|000100:'})
        assert response.status_code == 200
        assert response.get_json()['kanban_order_rank'] == '0|000100:'
        assert db.session.get(Post, untitled.id).kanban_status == 'draft'
