import secrets
import string


class SecurityUtils:
    """Security utility functions"""

    ID_ALPHABET = string.ascii_letters + string.digits + "_-"

    @staticmethod
    def generate_secure_token(length: int = 32) -> str:
        """Generate cryptographically secure random token"""
        return ''.join(secrets.choice(SecurityUtils.ID_ALPHABET) for _ in range(length))
