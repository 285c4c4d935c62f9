from app.core.config import settings
from app.db.models import PostType
from app.posts.schemas import PageListModel, Pager
from app.posts.service import PostService, get_post_service
from tests.conftest import make_category, make_post


# --- get_list ---

def test_get_list_pages_filtered_set(db, service, author):
    for i in range(25):
        make_post(db, author, f"post-{i}", published_days=i)

    pager = Pager(current_page=3, items_per_page=10)
    items = service.get_list(pager)

    assert len(items) == 5
    assert pager.total == 25
    assert pager.total_pages == 3
    # Publicados del más nuevo al más viejo
    assert [i.slug for i in items] == ["post-4", "post-3", "post-2", "post-1", "post-0"]


def test_get_list_is_sanitized_by_default(db, service, author):
    make_post(db, author, "p", published_days=1)

    items = service.get_list(Pager(current_page=1))
    assert items[0].author.email == settings.SANITIZED_EMAIL

    items = service.get_list(Pager(current_page=1), sanitize=False)
    assert items[0].author.email == "ana@example.com"


def test_get_list_by_category_label(db, service, author):
    rust = make_category(db, "Rust")
    make_post(db, author, "with-rust", published_days=1, categories=[rust])
    make_post(db, author, "without", published_days=2)

    assert [i.slug for i in service.get_list(Pager(current_page=1), category="rust")] == ["with-rust"]

    pager = Pager(current_page=1)
    assert service.get_list(pager, category="haskell") == []
    assert pager.total == 0


def test_get_list_public_feed_excludes_featured_drafts(db, service, author):
    make_post(db, author, "featured-draft", featured=True)
    make_post(db, author, "featured", published_days=1, featured=True)

    items = service.get_list(Pager(current_page=1), include="FP")
    assert [i.slug for i in items] == ["featured"]


# --- get_popular ---

def test_get_popular_orders_by_views(db, service, author, admin):
    make_post(db, author, "few", published_days=5, views=1)
    make_post(db, author, "many", published_days=1, views=50)
    make_post(db, admin, "tie-new", published_days=4, views=10)
    make_post(db, author, "tie-old", published_days=2, views=10)
    make_post(db, author, "draft", views=999)

    pager = Pager(current_page=1)
    items = service.get_popular(pager)

    assert [i.slug for i in items] == ["many", "tie-new", "tie-old", "few"]
    assert pager.total == 4
    assert all(i.author.email == settings.SANITIZED_EMAIL for i in items)

    assert [i.slug for i in service.get_popular(Pager(current_page=1), admin.id)] == ["tie-new"]


# --- get_post_items ---

def test_get_post_items_uses_default_cover(db, service, author):
    make_post(db, author, "no-cover")
    post = make_post(db, author, "cover")
    post.cover = "img/own.png"
    db.commit()

    covers = {i.slug: i.cover for i in service.get_post_items()}
    assert covers == {"no-cover": settings.DEFAULT_COVER, "cover": "img/own.png"}


# --- get_post_model ---

def test_get_post_model_neighbours_views_and_related(db, service, author):
    make_post(db, author, "newest", title="Rust async", published_days=9)
    make_post(db, author, "middle", title="Rust traits", published_days=5)
    make_post(db, author, "oldest", title="Cooking", published_days=1)
    make_post(db, author, "draft", title="Rust draft")

    model = service.get_post_model("middle")

    assert model.post.slug == "middle"
    assert model.newer.slug == "newest"
    assert model.older.slug == "oldest"
    assert model.post.views == 1
    assert [r.slug for r in model.related] == ["newest"]
    assert model.related[0].author.email == settings.SANITIZED_EMAIL


def test_get_post_model_skips_unpublished_neighbours(db, service, author):
    make_post(db, author, "only", published_days=1)
    make_post(db, author, "draft")

    model = service.get_post_model("only")

    assert model.newer is None
    assert model.older is None


def test_get_post_model_unknown_slug(service):
    assert service.get_post_model("nope") is None


# --- get_author_list / can_edit ---

def test_author_list_restricted_to_own_posts(db, service, author, admin):
    make_post(db, author, "mine-pub", published_days=1)
    make_post(db, author, "mine-draft")
    make_post(db, admin, "admin-pub", published_days=2)

    result = service.get_author_list(Pager(current_page=1), author)
    assert isinstance(result, PageListModel)
    assert [p.slug for p in result.posts] == ["mine-draft", "mine-pub"]
    assert result.pager.total == 2

    assert [p.slug for p in service.get_author_list(Pager(current_page=1), author, status="P").posts] == ["mine-pub"]
    assert [p.slug for p in service.get_author_list(Pager(current_page=1), author, status="D").posts] == ["mine-draft"]


def test_admin_list_sees_everything(db, service, author, admin):
    make_post(db, author, "a", published_days=1)
    make_post(db, admin, "b")
    make_post(db, author, "about", published_days=3, post_type=PostType.PAGE)

    result = service.get_author_list(Pager(current_page=1), admin)
    assert [p.slug for p in result.posts] == ["about", "b", "a"]


def test_author_list_with_term_searches(db, service, author, admin):
    make_post(db, author, "mine", title="Kotlin", published_days=1)
    make_post(db, admin, "theirs", title="Kotlin", published_days=2)

    assert [p.slug for p in service.get_author_list(Pager(current_page=1), author, term="kotlin").posts] == ["mine"]
    assert len(service.get_author_list(Pager(current_page=1), admin, term="kotlin").posts) == 2


def test_can_edit(db, author, admin):
    post = make_post(db, author, "p")
    other = make_post(db, admin, "q")

    assert PostService.can_edit(author, post)
    assert not PostService.can_edit(author, other)
    assert PostService.can_edit(admin, post)


def test_get_post_service_dependency(db):
    service = get_post_service(db)
    assert isinstance(service, PostService)
    assert service.db is db


def test_listings_page_after_last_is_empty(db, service, author):
    for i in range(12):
        make_post(db, author, f"post-{i}", published_days=i, views=i)

    list_pager = Pager(current_page=5, items_per_page=10)
    assert service.get_list(list_pager) == []
    assert list_pager.not_found

    popular_pager = Pager(current_page=5, items_per_page=10)
    assert service.get_popular(popular_pager) == []
    assert popular_pager.not_found

    editor = service.get_author_list(Pager(current_page=5, items_per_page=10), author)
    assert editor.posts == []
    assert editor.pager.not_found
