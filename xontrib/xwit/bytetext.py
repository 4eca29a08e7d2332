"""
Text read from repository metadata.

Git puts no encoding constraint on names, paths, messages or signatures.
`ByteText` is a `str` that remembers the bytes it came from: the decoding is
lossless when the bytes are valid UTF-8, and falls back to replacing the
invalid sequences with U+FFFD when they are not.

Because it is a `str`, it compares, hashes, slices and splits like the text
it shows, which is what path handling needs.
"""

class ByteText(str):
    '''
    A possibly-lossy UTF-8 view of raw bytes.
    '''
    raw: bytes
    '''
    The original bytes.
    '''
    lossy: bool
    '''
    `True` if the bytes were not valid UTF-8 and some were replaced.
    '''

    def __new__(cls, value: 'bytes|bytearray|memoryview|str' = b''):
        match value:
            case ByteText():
                raw = value.raw
                text = str.__str__(value)
                lossy = value.lossy
            case str():
                raw = value.encode('utf-8', 'surrogatepass')
                text = value
                lossy = False
            case bytes()|bytearray()|memoryview():
                raw = bytes(value)
                try:
                    text = raw.decode('utf-8')
                    lossy = False
                except UnicodeDecodeError:
                    text = raw.decode('utf-8', 'replace')
                    lossy = True
            case _:
                raise TypeError(f"Cannot make ByteText from {type(value).__name__}")
        self = super().__new__(cls, text)
        self.raw = raw
        self.lossy = lossy
        return self

    @property
    def text(self) -> str:
        '''
        The text as a plain `str`.
        '''
        return str.__str__(self)

    def __getnewargs__(self):
        return (self.raw,)

    def __repr__(self):
        if self.lossy:
            return f"ByteText({self.raw!r})"
        return f"ByteText({str.__repr__(self)})"

    def _repr_pretty_(self, p, cycle):
        p.text(repr(self))
