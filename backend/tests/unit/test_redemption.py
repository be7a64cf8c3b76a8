"""Tests for sharing.redemption.RedemptionHandler."""

import asyncio
import logging
from datetime import timedelta

import pytest

from models import SharedLink
from sharing import Expired, NotFound, RedemptionHandler


def _link(links, doc_id, clock, token="tok-1", minutes=60) -> SharedLink:
    link = SharedLink(
        token=token,
        document_id=doc_id,
        created_by=doc_id,
        created_at=clock.now,
        expires_at=clock.now + timedelta(minutes=minutes),
    )
    links.links[token] = link
    return link


class TestRedeem:
    async def test_valid_link_resolves_location(self, catalog, links, clock, owner):
        doc_id = catalog.add(owner.id, "https://objects.example.com/a.pdf")
        _link(links, doc_id, clock)
        handler = RedemptionHandler(catalog, links, clock=clock)
        assert await handler.redeem("tok-1") == "https://objects.example.com/a.pdf"

    async def test_unknown_token_is_not_found(self, catalog, links, clock):
        handler = RedemptionHandler(catalog, links, clock=clock)
        with pytest.raises(NotFound):
            await handler.redeem("nonexistent-token")

    async def test_empty_token_is_not_found(self, catalog, links, clock):
        with pytest.raises(NotFound):
            await RedemptionHandler(catalog, links, clock=clock).redeem("")

    async def test_exactly_at_expiry_still_valid(self, catalog, links, clock, owner):
        doc_id = catalog.add(owner.id)
        link = _link(links, doc_id, clock)
        clock.now = link.expires_at
        assert await RedemptionHandler(catalog, links, clock=clock).redeem("tok-1")

    async def test_just_after_expiry_is_expired(self, catalog, links, clock, owner):
        doc_id = catalog.add(owner.id)
        link = _link(links, doc_id, clock)
        clock.now = link.expires_at + timedelta(microseconds=1)
        with pytest.raises(Expired):
            await RedemptionHandler(catalog, links, clock=clock).redeem("tok-1")

    async def test_expired_is_distinct_from_not_found(self, catalog, links, clock, owner):
        doc_id = catalog.add(owner.id)
        _link(links, doc_id, clock)
        clock.advance(days=1)
        with pytest.raises(Expired) as exc_info:
            await RedemptionHandler(catalog, links, clock=clock).redeem("tok-1")
        assert exc_info.value.status_code == 410
        assert not isinstance(exc_info.value, NotFound)

    async def test_deleted_document_is_not_found(self, catalog, links, clock, owner):
        doc_id = catalog.add(owner.id)
        _link(links, doc_id, clock)
        catalog.remove(doc_id)
        with pytest.raises(NotFound) as exc_info:
            await RedemptionHandler(catalog, links, clock=clock).redeem("tok-1")
        assert "no longer exists" in exc_info.value.reason

    async def test_revoked_link_is_expired(self, catalog, links, clock, owner):
        doc_id = catalog.add(owner.id)
        link = _link(links, doc_id, clock)
        link.revoked_at = clock.now
        with pytest.raises(Expired) as exc_info:
            await RedemptionHandler(catalog, links, clock=clock).redeem("tok-1")
        assert exc_info.value.reason == "revoked"

    async def test_multi_use_does_not_mutate(self, catalog, links, clock, owner):
        doc_id = catalog.add(owner.id)
        link = _link(links, doc_id, clock)
        handler = RedemptionHandler(catalog, links, clock=clock)
        for _ in range(3):
            await handler.redeem("tok-1")
        assert link.redeemed_at is None

    async def test_concurrent_redemptions_all_succeed(self, catalog, links, clock, owner):
        doc_id = catalog.add(owner.id, "https://objects.example.com/x")
        _link(links, doc_id, clock)
        handler = RedemptionHandler(catalog, links, clock=clock)
        results = await asyncio.gather(*(handler.redeem("tok-1") for _ in range(5)))
        assert results == ["https://objects.example.com/x"] * 5

    async def test_public_messages_are_generic(self, catalog, links, clock, owner):
        doc_id = catalog.add(owner.id)
        _link(links, doc_id, clock)
        catalog.remove(doc_id)
        handler = RedemptionHandler(catalog, links, clock=clock)
        with pytest.raises(NotFound) as gone:
            await handler.redeem("tok-1")
        with pytest.raises(NotFound) as unknown:
            await handler.redeem("other")
        assert gone.value.message == unknown.value.message

    async def test_refusal_reason_is_logged_without_full_token(self, catalog, links, clock, caplog):
        handler = RedemptionHandler(catalog, links, clock=clock)
        token = "abcdefgh-the-secret-rest"
        with caplog.at_level(logging.INFO, logger="sharing.redemption"):
            with pytest.raises(NotFound):
                await handler.redeem(token)
        assert "unknown token" in caplog.text
        assert token not in caplog.text


class TestSingleUsePolicy:
    async def test_second_redemption_is_expired(self, catalog, links, clock, owner):
        doc_id = catalog.add(owner.id)
        link = _link(links, doc_id, clock)
        handler = RedemptionHandler(catalog, links, policy="single_use", clock=clock)

        await handler.redeem("tok-1")
        assert link.redeemed_at == clock.now
        with pytest.raises(Expired) as exc_info:
            await handler.redeem("tok-1")
        assert exc_info.value.reason == "already redeemed"

    async def test_expired_link_is_not_consumed(self, catalog, links, clock, owner):
        doc_id = catalog.add(owner.id)
        link = _link(links, doc_id, clock)
        clock.advance(hours=2)
        handler = RedemptionHandler(catalog, links, policy="single_use", clock=clock)
        with pytest.raises(Expired):
            await handler.redeem("tok-1")
        assert link.redeemed_at is None

    def test_unknown_policy_rejected(self, catalog, links):
        with pytest.raises(ValueError, match="Unknown redemption policy"):
            RedemptionHandler(catalog, links, policy="twice")
