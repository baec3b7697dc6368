"""Email templates."""

from urllib.parse import urlencode


class PasswordResetTemplate:
    @staticmethod
    def render(context: dict) -> dict:
        link = f"{context['frontend_url']}/reset?{urlencode({'resetToken': context['reset_token']})}"
        return {
            "subject": "Your password reset token",
            "body": (
                "Hi,\n\n"
                "Someone asked to reset the password on your account.\n\n"
                f"Use this link within the next hour to choose a new one:\n{link}\n\n"
                "If it wasn't you, you can ignore this email.\n"
            ),
            "html_body": (
                "<p>Someone asked to reset the password on your account.</p>"
                f'<p><a href="{link}">Click here to reset your password</a></p>'
            ),
        }
