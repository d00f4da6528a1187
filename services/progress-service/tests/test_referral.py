"""
Tests for referral codes and redemption rules
"""
import pytest

from chemquest.logic import referral
from chemquest.errors import AlreadyReferred, CodeNotFound, InvalidFormat, SelfReferral
from chemquest.logic.referral import (
    CODE_ALPHABET,
    apply_referral,
    format_code,
    generate_code,
    is_valid_code,
    normalize_code,
)


class TestCodes:

    def test_generated_code_shape(self):
        for _ in range(50):
            code = generate_code()
            assert len(code) == 6
            assert all(ch in CODE_ALPHABET for ch in code)
            assert is_valid_code(code)

    def test_alphabet_has_no_ambiguous_characters(self):
        assert not set("01OI") & set(CODE_ALPHABET)
        assert len(CODE_ALPHABET) == 32

    @pytest.mark.parametrize("code,valid", [
        ("ABC234", True),
        ("abc234", True),
        ("ABC23", False),
        ("ABC2345", False),
        ("ABC10O", False),
        ("ABC-23", False),
        ("", False),
        (None, False),
    ])
    def test_is_valid_code(self, code, valid):
        assert is_valid_code(code) is valid

    def test_normalize_code(self):
        assert normalize_code("  abc-234 ") == "ABC234"

    def test_format_code(self):
        assert format_code("ABC234") == "ABC-234"
        assert format_code("ABC") == "ABC"


class TestApplyReferral:

    def test_both_users_credited(self, make_record):
        user = make_record("user-1", referralCode="AAA222", totalCoins=100)
        referrer = make_record("user-2", referralCode="BBB333", gems=3)

        outcome = apply_referral(user, "BBB333", referrer)

        assert outcome.current_user.referredBy == "user-2"
        assert outcome.current_user.totalCoins == 600
        assert outcome.current_user.gems == 10
        assert outcome.referrer.totalCoins == 500
        assert outcome.referrer.gems == 13
        assert outcome.referrer.referralCount == 1
        assert outcome.reward.coins == 500
        assert outcome.reward.gems == 10
        assert user.referredBy is None

    def test_display_form_accepted(self, make_record):
        user = make_record("user-1", referralCode="AAA222")
        referrer = make_record("user-2", referralCode="BBB333")

        outcome = apply_referral(user, "bbb-333", referrer)

        assert outcome.current_user.referredBy == "user-2"

    def test_invalid_format(self, make_record):
        with pytest.raises(InvalidFormat):
            apply_referral(make_record(), "NOPE", None)

    def test_already_referred(self, make_record):
        user = make_record("user-1", referredBy="user-9")
        with pytest.raises(AlreadyReferred):
            apply_referral(user, "BBB333", make_record("user-2", referralCode="BBB333"))

    def test_code_not_found(self, make_record):
        with pytest.raises(CodeNotFound):
            apply_referral(make_record(), "ZZZ999", None)

    def test_self_referral(self, make_record):
        user = make_record("user-1", referralCode="AAA222")
        with pytest.raises(SelfReferral):
            apply_referral(user, "AAA222", user)

    def test_format_checked_before_already_referred(self, make_record):
        user = make_record("user-1", referredBy="user-9")
        with pytest.raises(InvalidFormat):
            apply_referral(user, "X", None)

    def test_already_referred_checked_before_lookup(self, make_record):
        user = make_record("user-1", referredBy="user-9")
        with pytest.raises(AlreadyReferred):
            apply_referral(user, "ZZZ999", None)


def test_format_code_follows_configured_length(monkeypatch):
    monkeypatch.setattr(referral.settings, "REFERRAL_CODE_LENGTH", 8)

    assert format_code("ABCD2345") == "ABCD-2345"
    assert format_code("ABC234") == "ABC234"
