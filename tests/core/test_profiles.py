"""Profile Records — tests for normalization, field access and write-back payloads.

Tests cover:
    - display_name defaults to email; id overwritten with the cache key
    - A defaulted display_name is re-derived after an email change
    - Backend aliases (displayName, isOnline) and extra fields
    - public_fields() excludes derived fields
    - UserDataByPrivacy id fallback
    - Credentials completeness and coercion
"""

from userstore.core.profiles import (
    Credentials, PublicProfile, UserDataByPrivacy,
    coerce_credentials, normalize_public_profile,
)


def test_normalize_defaults_display_name_to_email():
    profile = normalize_public_profile("u1", {"email": "bob@x.com"})
    assert profile.display_name == "bob@x.com"
    assert profile.id == "u1"


def test_normalize_keeps_existing_display_name():
    profile = normalize_public_profile(
        "u1", {"email": "bob@x.com", "displayName": "Bob"},
    )
    assert profile.display_name == "Bob"


def test_normalize_overwrites_id_with_key():
    profile = normalize_public_profile("u1", {"id": "other", "email": "a@x.com"})
    assert profile.id == "u1"


def test_normalize_returns_copy_of_model():
    original = PublicProfile(email="a@x.com")
    profile = normalize_public_profile("u1", original)
    assert profile is not original
    assert original.id is None


def test_aliases_and_extra_fields_are_read():
    profile = PublicProfile.model_validate(
        {"email": "a@x.com", "isOnline": True, "avatar": "cat.png"},
    )
    assert profile.is_online is True
    assert profile.field_value("isOnline") is True
    assert profile.field_value("is_online") is True
    assert profile.field_value("avatar") == "cat.png"
    assert profile.field_value("missing") is None


def test_public_fields_exclude_derived_fields():
    profile = normalize_public_profile(
        "u1", {"email": "a@x.com", "isOnline": True, "avatar": "cat.png"},
    )
    assert profile.public_fields() == {
        "email": "a@x.com", "isOnline": True, "avatar": "cat.png",
    }


def test_defaulted_display_name_follows_email_change():
    profile = normalize_public_profile("u1", {"email": "old@x.com"})
    profile.email = "new@x.com"
    assert normalize_public_profile("u1", profile).display_name == "new@x.com"


def test_explicit_display_name_survives_email_change():
    profile = normalize_public_profile("u1", {"email": "old@x.com"})
    profile.display_name = "Bobby"
    profile.email = "new@x.com"
    renormalized = normalize_public_profile("u1", profile)
    assert renormalized.display_name == "Bobby"
    assert renormalized.public_fields()["displayName"] == "Bobby"


def test_user_data_accepts_camel_case_payload():
    data = UserDataByPrivacy.model_validate({
        "id": "u1",
        "publicInfo": {"email": "a@x.com", "isOnline": True},
        "privateInfo": {"phone": "555"},
    })
    assert data.user_id == "u1"
    assert data.public_info.email == "a@x.com"
    assert data.private_info.model_extra == {"phone": "555"}
    assert data.server_info is None


def test_user_data_id_falls_back_to_public_info():
    data = UserDataByPrivacy(public_info=PublicProfile(id="u2", email="a@x.com"))
    assert data.user_id == "u2"


def test_user_data_without_any_id():
    assert UserDataByPrivacy().user_id is None


def test_credentials_complete_requires_both_fields():
    assert Credentials(email="a@x.com", password="pw").is_complete
    assert not Credentials(email="", password="pw").is_complete
    assert not Credentials(email="a@x.com").is_complete


def test_credentials_repr_hides_password():
    assert "secret" not in repr(Credentials(email="a@x.com", password="secret"))


def test_coerce_credentials_accepts_mapping_and_none():
    assert coerce_credentials({"email": "a@x.com", "password": "pw"}).is_complete
    assert coerce_credentials(None) == Credentials()
    creds = Credentials(email="a@x.com", password="pw")
    assert coerce_credentials(creds) is creds
