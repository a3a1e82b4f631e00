import bcrypt
from config import BCRYPT_ROUNDS, BCRYPT_MAX_PASSWORD_BYTES


class PasswordHasher:
    """bcrypt hashing for thread and reply delete passwords"""

    def __init__(self, rounds: int = BCRYPT_ROUNDS):
        self.rounds = rounds

    @staticmethod
    def _encode(password: str) -> bytes:
        # bcrypt only looks at the first 72 bytes
        return password.encode('utf-8')[:BCRYPT_MAX_PASSWORD_BYTES]

    def hash_password(self, password: str) -> str:
        """Hash a delete password for storage"""
        salt = bcrypt.gensalt(rounds=self.rounds)
        return bcrypt.hashpw(self._encode(password), salt).decode('utf-8')

    def verify_password(self, password: str, hashed: str) -> bool:
        """Check a delete password against its stored hash"""
        if not hashed:
            return False
        try:
            return bcrypt.checkpw(self._encode(password), hashed.encode('utf-8'))
        except ValueError:
            # malformed hash in the row
            return False
