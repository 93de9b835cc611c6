from typing import List, Optional

# Access-mode tokens as strace prints them. Matched verbatim.
O_RDONLY = "O_RDONLY"
O_WRONLY = "O_WRONLY"
O_RDWR = "O_RDWR"

WRITE_MODES = (O_WRONLY, O_RDWR)
READ_MODES = (O_RDONLY,)


def split_open_flags(flags: str) -> List[str]:
  """Split a symbolic open(2) flag argument such as ``O_WRONLY|O_CREAT``."""
  return [tok.strip() for tok in flags.split("|") if tok.strip()]


def access_mode(flags: str) -> Optional[str]:
  """Return the first access-mode token in ``flags``, or None.

  Tokens are scanned in the order strace printed them and the first
  recognized one wins.
  """
  for token in split_open_flags(flags):
    if token in WRITE_MODES or token in READ_MODES:
      return token
  return None


def is_write(mode: Optional[str]) -> bool:
  return mode in WRITE_MODES


def is_read(mode: Optional[str]) -> bool:
  return mode in READ_MODES
