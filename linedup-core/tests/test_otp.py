"""
Unit Tests for OTP Issuance, Verification and Tickets
=====================================================
"""

import asyncio

import pytest

PHONE = "054-123-4567"


def _wrong(code: str) -> str:
    return f"{(int(code) + 1) % 10 ** len(code):0{len(code)}d}"


@pytest.fixture
def tickets(kv, clock):
    from linedup_core.otp import VerificationTicketStore
    return VerificationTicketStore(kv, ttl_seconds=600, clock=clock)


@pytest.fixture
def otp_store(kv, tickets, clock):
    from linedup_core.otp import OTPStore, OTPConfig
    return OTPStore(kv, tickets, config=OTPConfig(), clock=clock)


class TestHashing:
    """Tests for code generation and hashing."""

    def test_generate_otp_length(self):
        """Codes should be zero-padded digits of the requested length."""
        from linedup_core.otp.hashing import generate_otp

        for _ in range(50):
            code = generate_otp(6)
            assert len(code) == 6
            assert code.isdigit()

    def test_hash_round_trip(self):
        from linedup_core.otp.hashing import generate_salt, hash_otp, verify_otp_hash

        salt = generate_salt()
        digest = hash_otp("123456", salt)

        assert verify_otp_hash("123456", salt, digest) is True
        assert verify_otp_hash("654321", salt, digest) is False


class TestOTPStore:
    """Tests for the passcode lifecycle."""

    @pytest.mark.asyncio
    async def test_correct_code_verifies_once(self, otp_store):
        """A code should be accepted once and then be gone."""
        from linedup_core.otp import OTPErrorKind

        code = await otp_store.issue(PHONE)

        first = await otp_store.verify(PHONE, code)
        second = await otp_store.verify(PHONE, code)

        assert first.valid is True
        assert second.valid is False
        assert second.error == OTPErrorKind.NOT_FOUND

    @pytest.mark.asyncio
    async def test_phone_formats_share_entry(self, otp_store):
        """Issue and verify should agree across phone renderings."""
        code = await otp_store.issue("054-123-4567")

        result = await otp_store.verify("+972541234567", code)

        assert result.valid is True

    @pytest.mark.asyncio
    async def test_code_is_not_stored_in_plain_text(self, otp_store, kv):
        code = await otp_store.issue(PHONE)

        stored = await kv.get("otp:972541234567")

        assert stored is not None
        assert code not in stored.values()

    @pytest.mark.asyncio
    async def test_attempt_limit(self, otp_store):
        """The fifth wrong code should exhaust the entry."""
        from linedup_core.otp import OTPErrorKind

        code = await otp_store.issue(PHONE)
        wrong = _wrong(code)

        results = [await otp_store.verify(PHONE, wrong) for _ in range(5)]

        assert [r.error for r in results[:4]] == [OTPErrorKind.MISMATCH] * 4
        assert results[4].error == OTPErrorKind.TOO_MANY_ATTEMPTS

        after = await otp_store.verify(PHONE, code)
        assert after.valid is False
        assert after.error == OTPErrorKind.NOT_FOUND

    @pytest.mark.asyncio
    async def test_correct_code_on_last_attempt(self, otp_store):
        """A correct code on the final allowed attempt should still verify."""
        code = await otp_store.issue(PHONE)
        wrong = _wrong(code)

        for _ in range(4):
            await otp_store.verify(PHONE, wrong)

        result = await otp_store.verify(PHONE, code)
        assert result.valid is True

    @pytest.mark.asyncio
    async def test_concurrent_wrong_attempts_are_all_counted(self, otp_store):
        """Parallel verifies must not lose attempt increments."""
        from linedup_core.otp import OTPErrorKind

        code = await otp_store.issue(PHONE)
        wrong = _wrong(code)

        results = await asyncio.gather(*[otp_store.verify(PHONE, wrong) for _ in range(5)])
        errors = [r.error for r in results]

        assert errors.count(OTPErrorKind.MISMATCH) == 4
        assert errors.count(OTPErrorKind.TOO_MANY_ATTEMPTS) == 1

    @pytest.mark.asyncio
    async def test_expired_code(self, otp_store, clock):
        """An expired code should fail and be purged."""
        from linedup_core.otp import OTPErrorKind

        code = await otp_store.issue(PHONE)
        clock.advance(601)

        first = await otp_store.verify(PHONE, code)
        second = await otp_store.verify(PHONE, code)

        assert first.error == OTPErrorKind.EXPIRED
        assert second.error == OTPErrorKind.NOT_FOUND

    @pytest.mark.asyncio
    async def test_expired_entry_is_purged_without_verify(self, otp_store, kv, clock):
        """Entries should not outlive their expiry for long."""
        from linedup_core.otp import OTPErrorKind

        code = await otp_store.issue(PHONE)
        clock.advance(3600)

        assert await kv.purge_expired() == 1
        result = await otp_store.verify(PHONE, code)
        assert result.error == OTPErrorKind.NOT_FOUND

    @pytest.mark.asyncio
    async def test_reissue_replaces_code(self, otp_store):
        """Only the latest code should be live."""
        await otp_store.issue(PHONE)
        latest = await otp_store.issue(PHONE)

        result = await otp_store.verify(PHONE, latest)
        assert result.valid is True

    @pytest.mark.asyncio
    async def test_reissue_resets_attempts(self, otp_store):
        code = await otp_store.issue(PHONE)
        for _ in range(4):
            await otp_store.verify(PHONE, _wrong(code))

        code = await otp_store.issue(PHONE)
        for _ in range(4):
            await otp_store.verify(PHONE, _wrong(code))

        result = await otp_store.verify(PHONE, code)
        assert result.valid is True

    @pytest.mark.asyncio
    async def test_invalid_phone(self, otp_store):
        """Issuing to an unaddressable phone should raise."""
        from linedup_core.errors import InvalidPhoneError
        from linedup_core.otp import OTPErrorKind

        with pytest.raises(InvalidPhoneError):
            await otp_store.issue("not a phone")

        result = await otp_store.verify("", "123456")
        assert result.error == OTPErrorKind.NOT_FOUND

    @pytest.mark.asyncio
    async def test_result_messages(self, otp_store):
        result = await otp_store.verify(PHONE, "123456")

        assert result.message == "OTP not found or expired"


class TestVerificationTickets:
    """Tests for post-verification password reset tickets."""

    @pytest.mark.asyncio
    async def test_keep_verified_grants_single_use_ticket(self, otp_store, tickets):
        code = await otp_store.issue(PHONE)
        await otp_store.verify(PHONE, code, keep_verified=True)

        assert await tickets.is_verified(PHONE) is True
        assert await tickets.authorize_password_reset("972541234567") is True
        assert await tickets.authorize_password_reset(PHONE) is False

    @pytest.mark.asyncio
    async def test_no_ticket_without_keep_verified(self, otp_store, tickets):
        code = await otp_store.issue(PHONE)
        await otp_store.verify(PHONE, code)

        assert await tickets.consume(PHONE) is False

    @pytest.mark.asyncio
    async def test_failed_verify_grants_nothing(self, otp_store, tickets):
        code = await otp_store.issue(PHONE)
        await otp_store.verify(PHONE, _wrong(code), keep_verified=True)

        assert await tickets.is_verified(PHONE) is False

    @pytest.mark.asyncio
    async def test_ticket_expires(self, otp_store, tickets, clock):
        code = await otp_store.issue(PHONE)
        await otp_store.verify(PHONE, code, keep_verified=True)

        clock.advance(601)

        assert await tickets.consume(PHONE) is False


class TestOTPService:
    """Tests for issuing and delivering codes."""

    @pytest.mark.asyncio
    async def test_send_code_delivers_issued_code(self, otp_store, tickets, provider):
        from linedup_core.otp import OTPService

        service = OTPService(otp_store, tickets, provider, template_id="HXotp")

        result = await service.send_code(PHONE)

        assert result.provider_message_id == "SM1"
        sent = provider.sent[0]
        assert sent["template_id"] == "HXotp"

        verified = await service.verify(PHONE, sent["variables"]["1"], keep_verified=True)
        assert verified.valid is True
        assert await service.authorize_password_reset(PHONE) is True

    @pytest.mark.asyncio
    async def test_send_code_propagates_delivery_error(self, otp_store, tickets):
        from conftest import FakeProvider
        from linedup_core.errors import DeliveryError
        from linedup_core.otp import OTPService

        service = OTPService(otp_store, tickets, FakeProvider(fail_for={PHONE}), template_id="HXotp")

        with pytest.raises(DeliveryError):
            await service.send_code(PHONE)

    @pytest.mark.asyncio
    async def test_send_code_timeout_is_delivery_error(self, otp_store, tickets):
        """Should raise DeliveryError with a timeout code when the provider hangs."""
        from conftest import FakeProvider
        from linedup_core.errors import DeliveryError
        from linedup_core.otp import OTPService

        class HangingProvider(FakeProvider):
            async def send_template(self, to, template_id, variables):
                await asyncio.sleep(10)

        service = OTPService(otp_store, tickets, HangingProvider(), template_id="HXotp", timeout=0.01)

        with pytest.raises(DeliveryError) as exc_info:
            await service.send_code(PHONE)

        assert exc_info.value.error_code == "timeout"
