"""Unit tests for the partial-update helpers."""

from __future__ import annotations

from datetime import timedelta

import pytest

from bandgo.domain.errors import ValidationError
from bandgo.domain.models.patching import apply_patch, new_entity_id, require_text
from bandgo.domain.models.user import PROFILE_EDITABLE_FIELDS
from tests.helpers import NOW, make_user


class TestApplyPatch:
    def test_patches_editable_fields(self) -> None:
        user = make_user()
        later = NOW + timedelta(minutes=5)

        updated = apply_patch(
            user, {"bio": "Bassist", "city": "Lisbon"}, PROFILE_EDITABLE_FIELDS, updated_at=later
        )

        assert updated.bio == "Bassist"
        assert updated.city == "Lisbon"
        assert updated.updated_at == later
        assert user.bio is None

    def test_lists_become_tuples(self) -> None:
        updated = apply_patch(make_user(), {"genres": ["jazz", "funk"]}, PROFILE_EDITABLE_FIELDS)

        assert updated.genres == ("jazz", "funk")

    def test_rejects_non_editable_fields(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            apply_patch(make_user(), {"role": "admin", "bio": "x"}, PROFILE_EDITABLE_FIELDS)

        assert exc_info.value.field == "role"
        assert "role" in str(exc_info.value)

    def test_keeps_updated_at_when_not_given(self) -> None:
        updated = apply_patch(make_user(), {"bio": "x"}, PROFILE_EDITABLE_FIELDS)

        assert updated.updated_at == NOW


class TestHelpers:
    @pytest.mark.parametrize("value", [None, "", "   "])
    def test_require_text_rejects_blank(self, value: str | None) -> None:
        with pytest.raises(ValidationError) as exc_info:
            require_text(value, "title")

        assert exc_info.value.field == "title"

    def test_require_text_accepts_text(self) -> None:
        require_text("Soundcheck", "title")

    def test_new_entity_id_is_unique(self) -> None:
        assert len({new_entity_id() for _ in range(50)}) == 50
