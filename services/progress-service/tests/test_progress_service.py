"""
Tests for ProgressService against a moto-backed store
"""
import pytest
from datetime import timedelta
from itertools import cycle

from chemquest.errors import (
    AlreadyCompleted,
    AlreadyOwned,
    AlreadyReferred,
    CodeGenerationExhausted,
    CodeNotFound,
    ConcurrentModification,
    InsufficientFunds,
    ItemNotFound,
    SelfReferral,
    UserAlreadyExists,
    UserNotFound,
)
from chemquest.logic.challenge_service import todays_challenge
from chemquest.logic.referral import is_valid_code
from chemquest.schemas import Rank
from chemquest.services.progress_service import ProgressService
from chemquest.shop_catalog import ShopCatalog


class TestRegisterUser:

    def test_new_user_defaults(self, service, repository, now):
        record = service.register_user("user-1", "Walter_W", "Walter", "W@Example.com")

        assert record.totalXP == 0
        assert record.currentRank == Rank.BRONZE
        assert record.streakCount == 1
        assert record.lastLogin == now
        assert record.totalCoins == 0
        assert record.gems == 0
        assert record.ownedItems == []
        assert record.referredBy is None
        assert record.username == "walter_w"
        assert record.email == "w@example.com"
        assert is_valid_code(record.referralCode)
        assert repository.get("user-1").model_dump() == record.model_dump()

    def test_duplicate_user(self, service):
        service.register_user("user-1", "first", "First")
        with pytest.raises(UserAlreadyExists):
            service.register_user("user-1", "again", "Again")

    def test_code_collision_retries(self, repository, now):
        codes = iter(["AAA222", "AAA222", "BBB333"])
        service = ProgressService(repository, clock=lambda: now, code_generator=lambda: next(codes))

        first = service.register_user("user-1", "first", "First")
        second = service.register_user("user-2", "second", "Second")

        assert first.referralCode == "AAA222"
        assert second.referralCode == "BBB333"

    def test_code_generation_exhausted(self, repository, now):
        codes = cycle(["AAA222"])
        service = ProgressService(repository, clock=lambda: now, code_generator=lambda: next(codes))
        service.register_user("user-1", "first", "First")

        with pytest.raises(CodeGenerationExhausted):
            service.register_user("user-2", "second", "Second")

        assert repository.get("user-2") is None


class TestQuiz:

    def test_quiz_is_persisted(self, service, repository, stored_user, now):
        stored_user(streakCount=6, lastLogin=now - timedelta(hours=30))

        outcome = service.complete_quiz("user-1", 8, 10)

        stored = repository.get("user-1")
        assert outcome.xp_earned == 116
        assert stored.totalXP == 116
        assert stored.streakCount == 7
        assert stored.lastLogin == now
        assert stored.version == 2

    def test_status_reflects_quiz(self, service, stored_user, now):
        stored_user(totalXP=480, lastLogin=now)

        service.complete_quiz("user-1", 0, 10)
        status = service.get_status("user-1")

        assert status.totalXP == 500
        assert status.currentRank == Rank.SILVER
        assert status.rankProgress.nextRank == Rank.GOLD
        assert status.streakMultiplier == 1.0

    def test_unknown_user(self, service):
        with pytest.raises(UserNotFound):
            service.complete_quiz("ghost", 1, 1)


class TestChallenges:

    def test_complete_and_repeat(self, service, repository, stored_user, now):
        stored_user()
        challenge = todays_challenge(now)

        record, credited = service.complete_challenge("user-1", challenge.type, challenge.requirement)

        assert credited == challenge
        assert record.gems == challenge.reward.gems
        assert repository.get("user-1").challengesCompleted == 1

        with pytest.raises(AlreadyCompleted):
            service.complete_challenge("user-1", challenge.type, challenge.requirement)

    def test_status(self, service, stored_user, now):
        stored_user()

        status = service.challenge_status("user-1")

        assert status["challenge"] == todays_challenge(now)
        assert status["isCompleted"] is False
        assert status["timeUntilNext"] == "12h 0m"


class TestReferrals:

    def test_redeem_credits_both_users(self, service, repository, stored_user):
        stored_user("user-1", "AAA222")
        stored_user("user-2", "BBB333")

        outcome = service.redeem_referral("user-1", "bbb-333")

        user = repository.get("user-1")
        referrer = repository.get("user-2")
        assert outcome.reward.coins == 500
        assert (user.totalCoins, user.gems, user.referredBy) == (500, 10, "user-2")
        assert (referrer.totalCoins, referrer.gems, referrer.referralCount) == (500, 10, 1)

    def test_second_redeem_fails_without_credit(self, service, repository, stored_user):
        stored_user("user-1", "AAA222")
        stored_user("user-2", "BBB333")
        stored_user("user-3", "CCC444")
        service.redeem_referral("user-1", "BBB333")

        with pytest.raises(AlreadyReferred):
            service.redeem_referral("user-1", "CCC444")

        assert repository.get("user-1").totalCoins == 500
        assert repository.get("user-3").referralCount == 0

    def test_self_referral(self, service, stored_user):
        stored_user("user-1", "AAA222")
        with pytest.raises(SelfReferral):
            service.redeem_referral("user-1", "AAA222")

    def test_unknown_code(self, service, stored_user):
        stored_user("user-1", "AAA222")
        with pytest.raises(CodeNotFound):
            service.redeem_referral("user-1", "ZZZ999")

    def test_lost_race_reports_already_referred(self, service, repository, stored_user, monkeypatch):
        stored_user("user-1", "AAA222")
        stored_user("user-2", "BBB333")
        save_referral = repository.save_referral

        def racing_save(current_user, referrer):
            # a concurrent request commits the same redemption first
            save_referral(current_user, referrer)
            raise ConcurrentModification("Concurrent modification detected. Please retry.")

        monkeypatch.setattr(repository, "save_referral", racing_save)

        with pytest.raises(AlreadyReferred):
            service.redeem_referral("user-1", "BBB333")

        assert repository.get("user-2").referralCount == 1

    def test_conflict_without_redemption_is_retryable(self, service, repository, stored_user, monkeypatch):
        stored_user("user-1", "AAA222")
        stored_user("user-2", "BBB333")

        def conflicting_save(current_user, referrer):
            raise ConcurrentModification("Concurrent modification detected. Please retry.")

        monkeypatch.setattr(repository, "save_referral", conflicting_save)

        with pytest.raises(ConcurrentModification) as exc:
            service.redeem_referral("user-1", "BBB333")
        assert exc.value.retryable is True

    def test_referral_stats(self, service, stored_user):
        stored_user("user-1", "AAA222", referralCount=3)

        stats = service.referral_stats("user-1")

        assert stats == {
            "referralCode": "AAA222",
            "formattedCode": "AAA-222",
            "referralCount": 3,
            "hasUsedReferral": False,
        }


class TestShop:

    def test_purchase_persisted(self, service, repository, stored_user):
        stored_user(totalCoins=200)

        record, item = service.purchase("user-1", "powerup-time")

        assert item.price == 150
        assert record.totalCoins == 50
        assert repository.get("user-1").ownedItems == ["powerup-time"]

    def test_insufficient_funds_leaves_balance(self, service, repository, stored_user):
        stored_user(totalCoins=100)

        with pytest.raises(InsufficientFunds) as exc:
            service.purchase("user-1", "powerup-time")

        assert exc.value.shortfall == 50
        stored = repository.get("user-1")
        assert stored.totalCoins == 100
        assert stored.ownedItems == []

    def test_second_purchase_rejected(self, service, repository, stored_user):
        stored_user(totalCoins=1000)
        service.purchase("user-1", "powerup-time")

        with pytest.raises(AlreadyOwned):
            service.purchase("user-1", "powerup-time")

        assert repository.get("user-1").totalCoins == 850

    def test_unknown_item_checked_first(self, service):
        with pytest.raises(ItemNotFound):
            service.purchase("ghost", "no-such-item")


class TestLeaderboard:

    def test_limit_is_clamped(self, service, stored_user):
        stored_user("user-1", "AAA222", totalXP=10)
        stored_user("user-2", "BBB333", totalXP=20)

        assert [r.userId for r in service.leaderboard(1)] == ["user-2"]
        assert len(service.leaderboard(1000)) == 2
        assert len(service.leaderboard(0)) == 1
        assert len(service.leaderboard()) == 2


def test_catalog_defaults(repository):
    assert isinstance(ProgressService(repository).catalog, ShopCatalog)
