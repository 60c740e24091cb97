"""Tests for the shortener service."""

import pytest

from linkly.models.link import ShortLinkUpdate
from linkly.repositories.link_repository import LinkRepository
from linkly.services.codegen import CodeGenerator
from linkly.services.exceptions import (
    CollisionError,
    GenerationExhausted,
    LinkValidationError,
    NotFoundError,
)
from linkly.services.shortener import (
    ShortenerService,
    build_short_url,
    normalize_url,
    validate_custom_code,
)
from tests.utils import create_test_link, random_url


class ScriptedCodeGenerator(CodeGenerator):
    """Hands out a fixed sequence of codes without checking existence."""

    def __init__(self, link_repository, codes, max_attempts=3):
        super().__init__(link_repository, max_attempts=max_attempts)
        self.codes = list(codes)

    async def generate(self, db):
        return self.codes.pop(0) if len(self.codes) > 1 else self.codes[0]


@pytest.mark.service
class TestUrlValidation:
    """Test suite for destination and custom code validation."""

    def test_scheme_is_added(self):
        assert normalize_url("example.com/page") == "https://example.com/page"

    def test_existing_scheme_is_kept(self):
        assert normalize_url("http://example.com") == "http://example.com"
        assert normalize_url("  https://example.com/a?b=c  ") == "https://example.com/a?b=c"

    @pytest.mark.parametrize("url", [
        "", None, "x", "localhost", "https://", "http://exa mple.com",
        "[abc.com", "https://exa]mple.com", "http://[example.com/path",
    ])
    def test_invalid_urls(self, url):
        with pytest.raises(LinkValidationError) as exc_info:
            normalize_url(url)

        assert exc_info.value.field == "url"
        assert exc_info.value.message == "Please enter a valid URL"

    @pytest.mark.parametrize("url", ["ftp://files.example.com", "javascript://example.com/x"])
    def test_only_http_schemes(self, url):
        with pytest.raises(LinkValidationError) as exc_info:
            normalize_url(url)

        assert exc_info.value.field == "url"

    def test_overlong_url(self):
        with pytest.raises(LinkValidationError):
            normalize_url("https://example.com/" + "a" * 2100)

    @pytest.mark.parametrize("custom", [None, "", "   "])
    def test_blank_custom_code_means_none(self, custom):
        assert validate_custom_code(custom) is None

    @pytest.mark.parametrize("custom, message", [
        ("abc", "Custom URL must be at least 6 characters long"),
        ("a" * 21, "Custom URL must be at most 20 characters long"),
        ("my link!", "Custom URL can only contain letters, numbers, hyphens and underscores"),
        ("dashboard", "This URL is reserved"),
        ("REGISTER", "This URL is reserved"),
    ])
    def test_invalid_custom_codes(self, custom, message):
        with pytest.raises(LinkValidationError) as exc_info:
            validate_custom_code(custom)

        assert exc_info.value.field == "custom"
        assert exc_info.value.message == message

    def test_valid_custom_code(self):
        assert validate_custom_code(" my-link_2024 ") == "my-link_2024"

    def test_build_short_url(self):
        assert build_short_url("abc12345") == "http://testserver/abc12345"


@pytest.mark.service
class TestShortenerService:
    """Test suite for link creation and management."""

    @pytest.fixture
    def link_repository(self):
        return LinkRepository()

    @pytest.fixture
    def shortener_service(self, link_repository):
        return ShortenerService(link_repository)

    @pytest.mark.asyncio
    async def test_create_link_generates_code(self, test_db, shortener_service, link_repository):
        link, created = await shortener_service.create_link(test_db, url="example.com/landing")

        assert created is True
        assert len(link.short_code) == 8
        assert link.original_url == "https://example.com/landing"
        assert link.is_custom is False

        stored = await link_repository.find_active_by_short_code(test_db, link.short_code)
        assert stored.id == link.id

    @pytest.mark.asyncio
    async def test_same_destination_is_reused(self, test_db, shortener_service, link_repository):
        test_url = random_url()

        first, first_created = await shortener_service.create_link(test_db, url=test_url)
        second, second_created = await shortener_service.create_link(test_db, url=test_url)

        assert first_created is True
        assert second_created is False
        assert second.short_code == first.short_code
        assert await link_repository.count(test_db) == 1

    @pytest.mark.asyncio
    async def test_custom_code_skips_dedup(self, test_db, shortener_service, link_repository):
        test_url = random_url()
        generated, _ = await shortener_service.create_link(test_db, url=test_url)

        custom, created = await shortener_service.create_link(test_db, url=test_url, custom="campaign1")

        assert created is True
        assert custom.short_code == "campaign1"
        assert custom.is_custom is True
        assert custom.id != generated.id

    @pytest.mark.asyncio
    async def test_deactivated_destination_is_not_reused(self, test_db, shortener_service):
        test_url = random_url()
        revoked = await create_test_link(test_db, original_url=test_url, is_active=False)

        link, created = await shortener_service.create_link(test_db, url=test_url)

        assert created is True
        assert link.short_code != revoked.short_code

    @pytest.mark.asyncio
    async def test_taken_custom_code_leaves_existing_link(self, test_db, shortener_service, link_repository):
        first_url = random_url()
        await shortener_service.create_link(test_db, url=first_url, custom="taken-code")

        with pytest.raises(CollisionError) as exc_info:
            await shortener_service.create_link(test_db, url=random_url(), custom="taken-code")

        assert exc_info.value.field == "custom"
        assert exc_info.value.message == "Custom URL is already taken"

        stored = await link_repository.find_by_short_code(test_db, "taken-code")
        assert stored.original_url == first_url
        assert await link_repository.count(test_db) == 1

    @pytest.mark.asyncio
    async def test_inactive_custom_code_is_still_taken(self, test_db, shortener_service):
        await create_test_link(test_db, short_code="retired1", is_active=False)

        with pytest.raises(CollisionError):
            await shortener_service.create_link(test_db, url=random_url(), custom="retired1")

    @pytest.mark.asyncio
    async def test_invalid_input_is_rejected_before_storage(self, test_db, shortener_service, link_repository):
        with pytest.raises(LinkValidationError):
            await shortener_service.create_link(test_db, url="not a url")
        with pytest.raises(LinkValidationError):
            await shortener_service.create_link(test_db, url=random_url(), custom="abc")

        assert await link_repository.count(test_db) == 0

    @pytest.mark.asyncio
    async def test_generated_code_retries_after_unique_violation(self, test_db, link_repository):
        """A code taken between the check and the insert is drawn again."""
        await create_test_link(test_db, short_code="raced001")
        service = ShortenerService(
            link_repository, ScriptedCodeGenerator(link_repository, ["raced001", "fresh001"])
        )

        link, created = await service.create_link(test_db, url=random_url())

        assert created is True
        assert link.short_code == "fresh001"
        assert await link_repository.count(test_db) == 2

    @pytest.mark.asyncio
    async def test_generation_exhausted(self, test_db, link_repository):
        await create_test_link(test_db, short_code="raced002")
        service = ShortenerService(
            link_repository, ScriptedCodeGenerator(link_repository, ["raced002"], max_attempts=3)
        )

        with pytest.raises(GenerationExhausted):
            await service.create_link(test_db, url=random_url())

        assert await link_repository.count(test_db) == 1

    @pytest.mark.asyncio
    async def test_get_link(self, test_db, shortener_service):
        await create_test_link(test_db, short_code="lookup01", is_active=False)

        link = await shortener_service.get_link(test_db, "lookup01")
        assert link.is_active is False

        with pytest.raises(NotFoundError):
            await shortener_service.get_link(test_db, "missing1")

    @pytest.mark.asyncio
    async def test_toggle_active(self, test_db, shortener_service):
        link = await create_test_link(test_db, owner_id="owner-1")

        toggled = await shortener_service.toggle_active(test_db, link.id, owner_id="owner-1")
        assert toggled.is_active is False

        toggled = await shortener_service.toggle_active(test_db, link.id, owner_id="owner-1")
        assert toggled.is_active is True

    @pytest.mark.asyncio
    async def test_toggle_anonymous_link(self, test_db, shortener_service):
        link = await create_test_link(test_db)

        toggled = await shortener_service.toggle_active(test_db, link.id)
        assert toggled.is_active is False

        with pytest.raises(NotFoundError):
            await shortener_service.toggle_active(test_db, link.id, owner_id="owner-1")

    @pytest.mark.asyncio
    async def test_toggle_someone_elses_link(self, test_db, shortener_service):
        link = await create_test_link(test_db, owner_id="owner-1")

        with pytest.raises(NotFoundError):
            await shortener_service.toggle_active(test_db, link.id, owner_id="owner-2")

        with pytest.raises(NotFoundError):
            await shortener_service.toggle_active(test_db, link.id)

        with pytest.raises(NotFoundError):
            await shortener_service.toggle_active(test_db, 99999)

        await test_db.refresh(link)
        assert link.is_active is True

    @pytest.mark.asyncio
    async def test_update_requires_owner(self, test_db, shortener_service):
        link = await create_test_link(test_db, owner_id="owner-1", title="Original")

        with pytest.raises(NotFoundError):
            await shortener_service.update_metadata(test_db, link.id, ShortLinkUpdate(title="Defaced"))

        await test_db.refresh(link)
        assert link.title == "Original"

    @pytest.mark.asyncio
    async def test_update_metadata(self, test_db, shortener_service):
        link = await create_test_link(test_db, owner_id="owner-1")

        updated = await shortener_service.update_metadata(
            test_db, link.id, ShortLinkUpdate(title="Spring sale"), owner_id="owner-1"
        )

        assert updated.title == "Spring sale"
        assert updated.description is None
