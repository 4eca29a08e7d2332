'''
Object identifiers.

An `ObjectId` is the content hash naming a git object. It is immutable and
compared by its canonical form: lower-case hexadecimal, 40 digits for SHA-1
repositories and 64 for SHA-256 ones.

Abbreviated ids are not kept here. They are only unique at the moment the
repository computes them, so they travel next to the id in the records that
need one (`short_id`, `target_short`).
'''

import re
from typing import Any


RE_OBJECT_ID = re.compile(r'^(?:[0-9a-f]{40}|[0-9a-f]{64})$')


class ObjectId:
    """
    The id of a commit, tree, blob or tag object.
    """
    __slots__ = ('__hex',)

    __hex: str
    @property
    def hex(self) -> str:
        return self.__hex

    def __init__(self, hex: 'str|bytes|ObjectId', /):
        match hex:
            case ObjectId():
                value = hex.hex
            case bytes():
                value = hex.decode('ascii', 'replace')
            case str():
                value = hex
            case _:
                raise TypeError(f"Invalid object id: {hex!r}")
        value = value.strip().lower()
        if not RE_OBJECT_ID.match(value):
            raise ValueError(f"Invalid object id: {hex!r}")
        self.__hex = value

    @classmethod
    def zero(cls, length: int = 40) -> 'ObjectId':
        '''
        The all-zero id. No object ever has it.
        '''
        return cls('0' * length)

    @classmethod
    def parse(cls, value: Any) -> 'ObjectId|None':
        '''
        Like the constructor, but `None` for empty or malformed text.
        '''
        if value is None or value == '' or value == b'':
            return None
        try:
            return cls(value)
        except (TypeError, ValueError):
            return None

    @property
    def is_zero(self) -> bool:
        return not self.__hex.strip('0')

    def __setattr__(self, name: str, value: Any):
        if name == '_ObjectId__hex' and not hasattr(self, name):
            object.__setattr__(self, name, value)
            return
        raise AttributeError(f"{type(self).__name__} is immutable")

    def __hash__(self):
        return hash(self.__hex)

    def __eq__(self, other):
        if not isinstance(other, ObjectId):
            return False
        return self.__hex == other.hex

    def __lt__(self, other):
        if not isinstance(other, ObjectId):
            return NotImplemented
        return self.__hex < other.hex

    def __str__(self):
        return self.__hex

    def __repr__(self):
        return f"ObjectId({self.__hex!r})"

    def __format__(self, fmt: str):
        """
        Format specifiers:
        - 'a' abbreviates to the first 8 digits (for display only; this is
          not the repository's unique abbreviation).
        Anything else is applied to the hex string.
        """
        if 'a' in fmt:
            return self.__hex[:8].__format__(fmt.replace('a', ''))
        return self.__hex.__format__(fmt)

    def _repr_pretty_(self, p, cycle):
        p.text(f"ObjectId({self.__hex})")
