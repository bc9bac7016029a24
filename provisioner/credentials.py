"""Génération de mots de passe pour les variantes gérées (PostgreSQL)."""
import secrets
import string

LOWER_LETTERS = string.ascii_lowercase
UPPER_LETTERS = string.ascii_uppercase
DIGITS = string.digits
SYMBOLS = "~!@#$%^&*()_+`-={}|[]\\:\"<>?,./"

_rng = secrets.SystemRandom()


def generate_password(
    length: int = 64,
    num_digits: int = 10,
    num_symbols: int = 10,
    allow_repeat: bool = False,
) -> str:
    """Génère un mot de passe à haute entropie.

    Le mot de passe contient exactement ``num_digits`` chiffres et
    ``num_symbols`` symboles, le reste en lettres minuscules et
    majuscules. Sans ``allow_repeat`` aucun caractère
    n'apparaît deux fois.
    """
    letters = LOWER_LETTERS + UPPER_LETTERS
    num_letters = length - num_digits - num_symbols
    if num_letters < 0:
        raise ValueError("length is smaller than digits + symbols")
    if not allow_repeat:
        if num_letters > len(letters):
            raise ValueError("not enough distinct letters without repeats")
        if num_digits > len(DIGITS):
            raise ValueError("not enough distinct digits without repeats")
        if num_symbols > len(SYMBOLS):
            raise ValueError("not enough distinct symbols without repeats")

    chars: list = []
    for pool, count in ((letters, num_letters), (DIGITS, num_digits), (SYMBOLS, num_symbols)):
        if allow_repeat:
            chars.extend(secrets.choice(pool) for _ in range(count))
        else:
            chars.extend(_rng.sample(pool, count))

    _rng.shuffle(chars)
    return "".join(chars)
