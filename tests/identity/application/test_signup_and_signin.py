import threading

import pytest
from protean import current_domain
from protean.exceptions import ValidationError
from storefront.domain import storefront
from storefront.exceptions import AuthError
from storefront.identity.access import Permission
from storefront.identity.passwords import verify_password
from storefront.identity.user.authentication import INVALID_CREDENTIALS, authenticate
from storefront.identity.user.registration import SignUp, sign_up
from storefront.identity.user.user import User


class TestSignUp:
    def test_creates_user_with_hashed_password(self):
        user_id = current_domain.process(
            SignUp(email="Shopper@Example.com", name="Shopper", password="correct horse"),
            asynchronous=False,
        )
        user = current_domain.repository_for(User).get(user_id)

        assert user.email == "shopper@example.com"
        assert user.password != "correct horse"
        assert verify_password("correct horse", user.password)
        assert user.permission_set == {Permission.USER}

    def test_duplicate_email_is_rejected_case_insensitively(self, make_user):
        make_user(email="taken@example.com")
        with pytest.raises(ValidationError) as exc:
            current_domain.process(
                SignUp(email="TAKEN@example.com", name="Other", password="pw"),
                asynchronous=False,
            )
        assert "email" in exc.value.messages

    def test_password_longer_than_bcrypt_limit_is_rejected(self):
        with pytest.raises(ValidationError):
            current_domain.process(
                SignUp(email="long@example.com", name="Long", password="x" * 73),
                asynchronous=False,
            )

    def test_concurrent_signups_for_one_email_create_one_user(self):
        errors = []

        def _signup():
            with storefront.domain_context():
                try:
                    sign_up(name="Racer", email="race@example.com", password="pw")
                except ValidationError as exc:
                    errors.append(exc)

        threads = [threading.Thread(target=_signup) for _ in range(3)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        users = current_domain.repository_for(User)._dao.query.filter(email="race@example.com").all().items
        assert len(users) == 1
        assert len(errors) == 2


class TestAuthenticate:
    def test_correct_credentials(self, make_user):
        user = make_user(email="me@example.com", password="open sesame")
        assert authenticate("ME@example.com", "open sesame").id == user.id

    def test_wrong_password(self, make_user):
        make_user(email="me@example.com", password="open sesame")
        with pytest.raises(AuthError) as exc:
            authenticate("me@example.com", "close sesame")
        assert exc.value.message == INVALID_CREDENTIALS

    def test_unknown_email_gives_the_same_message(self):
        with pytest.raises(AuthError) as exc:
            authenticate("ghost@example.com", "whatever")
        assert exc.value.message == INVALID_CREDENTIALS
