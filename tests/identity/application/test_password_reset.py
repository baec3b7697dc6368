from datetime import UTC, datetime, timedelta

import pytest
from protean import current_domain
from protean.exceptions import ValidationError
from storefront.exceptions import NotFoundError
from storefront.identity.passwords import verify_password
from storefront.identity.user.password_reset import ResetPassword, request_password_reset
from storefront.identity.user.user import User


def _reset(token, password="brand new", confirm=None):
    return current_domain.process(
        ResetPassword(reset_token=token, password=password, confirm_password=confirm or password),
        asynchronous=False,
    )


class TestRequestPasswordReset:
    def test_stores_token_and_mails_link(self, make_user, mailer):
        user = make_user(email="forgetful@example.com")

        result = request_password_reset("forgetful@example.com")

        stored = current_domain.repository_for(User).get(user.id)
        assert result["delivered"] is True
        assert len(stored.reset_token) == 40
        assert stored.reset_token_is_valid(stored.reset_token)

        assert len(mailer.sent_emails) == 1
        email = mailer.sent_emails[0]
        assert email.to == "forgetful@example.com"
        assert f"/reset?resetToken={stored.reset_token}" in email.body

    def test_unknown_email(self, mailer):
        with pytest.raises(NotFoundError):
            request_password_reset("nobody@example.com")
        assert mailer.sent_emails == []

    def test_mail_failure_keeps_the_token(self, make_user, mailer):
        user = make_user(email="forgetful@example.com")
        mailer.configure(should_succeed=False)

        result = request_password_reset("forgetful@example.com")

        assert result["delivered"] is False
        assert current_domain.repository_for(User).get(user.id).reset_token is not None

    def test_mailer_exception_keeps_the_token(self, make_user):
        class ExplodingMailer:
            def send(self, **kwargs):
                raise ConnectionError("smtp down")

        user = make_user(email="forgetful@example.com")
        result = request_password_reset("forgetful@example.com", mailer=ExplodingMailer())

        assert result["delivered"] is False
        assert current_domain.repository_for(User).get(user.id).reset_token is not None


class TestResetPassword:
    def _token_for(self, user):
        request_password_reset(user.email)
        return current_domain.repository_for(User).get(user.id).reset_token

    def test_sets_new_password_and_consumes_token(self, make_user, mailer):
        user = make_user(password="old password")
        token = self._token_for(user)

        assert _reset(token) == str(user.id)

        stored = current_domain.repository_for(User).get(user.id)
        assert verify_password("brand new", stored.password)
        assert stored.reset_token is None
        assert stored.reset_token_expiry is None

    def test_token_cannot_be_reused(self, make_user, mailer):
        user = make_user()
        token = self._token_for(user)
        _reset(token)
        with pytest.raises(ValidationError):
            _reset(token, password="another one")

    def test_mismatched_confirmation(self, make_user, mailer):
        user = make_user(password="old password")
        token = self._token_for(user)

        with pytest.raises(ValidationError) as exc:
            _reset(token, password="brand new", confirm="brand old")

        assert "confirm_password" in exc.value.messages
        assert verify_password("old password", current_domain.repository_for(User).get(user.id).password)

    def test_expired_token_leaves_password_unchanged(self, make_user, mailer):
        user = make_user(password="old password")
        token = self._token_for(user)

        repo = current_domain.repository_for(User)
        stored = repo.get(user.id)
        stored.reset_token_expiry = datetime.now(UTC) - timedelta(seconds=1)
        repo.add(stored)

        with pytest.raises(ValidationError):
            _reset(token)
        assert verify_password("old password", repo.get(user.id).password)

    def test_unknown_token(self):
        with pytest.raises(ValidationError):
            _reset("f" * 40)
