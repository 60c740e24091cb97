"""Tests for random short code generation."""

import pytest

from linkly.repositories.link_repository import LinkRepository
from linkly.services.codegen import CodeGenerator
from linkly.services.exceptions import GenerationExhausted
from tests.utils import create_test_link


class StubLinkRepository:
    """Answers existence checks without a database."""

    def __init__(self, taken=None, always_taken=False):
        self.taken = set(taken or ())
        self.always_taken = always_taken
        self.checked = []

    async def short_code_exists(self, db, short_code):
        self.checked.append(short_code)
        return self.always_taken or short_code in self.taken


@pytest.mark.service
class TestCodeGenerator:
    """Test suite for the code generator."""

    def test_sample_uses_length_and_alphabet(self):
        generator = CodeGenerator(StubLinkRepository(), length=12, alphabet="xyz")

        for _ in range(20):
            code = generator.sample()
            assert len(code) == 12
            assert set(code) <= set("xyz")

    def test_defaults_from_settings(self):
        generator = CodeGenerator(StubLinkRepository())

        assert generator.length == 8
        assert generator.max_attempts == 30
        assert len(generator.sample()) == 8

    @pytest.mark.asyncio
    async def test_generate_returns_free_code(self):
        repository = StubLinkRepository()
        generator = CodeGenerator(repository)

        code = await generator.generate(None)

        assert len(code) == 8
        assert repository.checked == [code]

    @pytest.mark.asyncio
    async def test_generate_exhausts_when_every_code_is_taken(self):
        repository = StubLinkRepository(always_taken=True)
        generator = CodeGenerator(repository, max_attempts=5)

        with pytest.raises(GenerationExhausted) as exc_info:
            await generator.generate(None)

        assert exc_info.value.attempts == 5
        assert len(repository.checked) == 5

    @pytest.mark.asyncio
    async def test_reserved_samples_are_never_returned(self):
        """Two-character samples are below the minimum path length."""
        repository = StubLinkRepository()
        generator = CodeGenerator(repository, length=2, max_attempts=4)

        with pytest.raises(GenerationExhausted):
            await generator.generate(None)

        assert repository.checked == []

    @pytest.mark.asyncio
    async def test_generate_skips_taken_codes(self, test_db):
        """With a one-letter alphabet the only candidate is taken."""
        await create_test_link(test_db, short_code="qqq", is_active=False)
        generator = CodeGenerator(LinkRepository(), length=3, alphabet="q", max_attempts=3)

        with pytest.raises(GenerationExhausted):
            await generator.generate(test_db)
