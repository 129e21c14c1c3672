import random
import string

UID_ALPHABET = string.ascii_uppercase + string.ascii_lowercase + string.digits
UID_LENGTH = 5

def generate_uid(length: int = UID_LENGTH) -> str:
    """Generate a short public team identifier like 'qK234'"""
    return ''.join(random.choice(UID_ALPHABET) for _ in range(length))

def generate_otp() -> str:
    """Generate a 6-digit verification code"""
    return str(random.randint(100000, 999999))
