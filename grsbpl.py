#!/usr/bin/env python3
"""
grsbpl.py — Lexer and interpreter for GRSBPL, a tiny stack-based language.

Integers only. Postfix arithmetic, named variables, labels with a
conditional goto, and call/return functions with their own stack frames.

Architecture:
  - Lexer: characters -> list of Token, each token remembers where it started
  - Pass 1: walk the tokens once, index labels and function headers
  - Pass 2: dispatch on the token at the current position until EOF
  - Control flow addresses are token indices, not byte offsets

Language summary:
  12 0x1F 0b101 0o17 1_000   push integer literal
  'a' '\\n'                   push character code
  "text" out                 print a string (strings only work with out)
  + - * / %                  binary arithmetic, 32-bit wrap-around
  and or xor bnot            bitwise
  not                        logical not (0 -> 1, else 0)
  dup swap pop               stack manipulation
  out nout in                print char, print number, read byte (-1 on EOF)
  &name  @name               store / load variable
  :name  goto name           label / jump if top of stack is non-zero (peeked)
  function name N ... return declare function with N parameters
  name                       call function
"""

import enum
import io
import logging
import sys
from typing import Callable, NamedTuple

log = logging.getLogger('grsbpl')
log.addHandler(logging.NullHandler())

STACK_LIMIT      = 1_000_000
INITIAL_CAPACITY = 16
EOF_INPUT        = -1

INT_MIN = -(1 << 31)
INT_MAX = (1 << 31) - 1


def to_int32(value: int) -> int:
    """Wrap an arbitrary Python int into the signed 32-bit range."""
    return ((value - INT_MIN) & 0xFFFFFFFF) + INT_MIN


# ── Errors ────────────────────────────────────────────────────────────────────

class GrsbplError(Exception):
    """A fatal error with a source span. `length` is None when unknown."""

    def __init__(self, message: str, line: int, column: int, length: int | None):
        super().__init__(message)
        self.message = message
        self.line    = line
        self.column  = column
        self.length  = length


class LexError(GrsbplError):
    pass


class RunError(GrsbplError):
    pass


class StackUnderflow(IndexError):
    pass


# ── Tokens ────────────────────────────────────────────────────────────────────

class TokenKind(enum.Enum):
    # values
    CHARACTER  = 'CHARACTER'
    CHAR       = 'CHAR'
    AMPERSAND  = '&'
    AT         = '@'
    # binary operators
    PLUS       = '+'
    MINUS      = '-'
    STAR       = '*'
    SLASH      = '/'
    PERCENT    = '%'
    BNOT       = 'BNOT'
    AND        = 'AND'
    OR         = 'OR'
    XOR        = 'XOR'
    # other operators
    NOT        = 'NOT'
    DUP        = 'DUP'
    SWAP       = 'SWAP'
    POP        = 'POP'
    # io
    OUT        = 'OUT'
    NOUT       = 'NOUT'
    IN         = 'IN'
    STRING     = 'STRING'
    # control flow
    COLUMN     = ':'
    GOTO       = 'GOTO'
    FUNCTION   = 'FUNCTION'
    IDENTIFIER = 'IDENTIFIER'
    RETURN     = 'RETURN'
    EOF        = 'EOF'

    def __str__(self):
        return self.value


class Token(NamedTuple):
    kind:   TokenKind
    value:  int | str | None = None
    line:   int = 0
    column: int = 0

    def __str__(self):
        if self.value is None:
            return f'{self.kind}@{self.line}:{self.column}'
        return f'{self.kind}({self.value!r})@{self.line}:{self.column}'


K = TokenKind

KEYWORDS = {
    'out':      K.OUT,
    'nout':     K.NOUT,
    'in':       K.IN,
    'goto':     K.GOTO,
    'not':      K.NOT,
    'swap':     K.SWAP,
    'bnot':     K.BNOT,
    'and':      K.AND,
    'or':       K.OR,
    'xor':      K.XOR,
    'dup':      K.DUP,
    'pop':      K.POP,
    'function': K.FUNCTION,
    'return':   K.RETURN,
}

SYMBOLS = {
    '+': K.PLUS,
    '-': K.MINUS,
    '*': K.STAR,
    '/': K.SLASH,
    '%': K.PERCENT,
    '&': K.AMPERSAND,
    '@': K.AT,
    ':': K.COLUMN,
}

ESCAPES = {
    'n':  '\n',
    'r':  '\r',
    '\\': '\\',
    '0':  '\0',
    "'":  "'",
    'b':  '\b',
    'f':  '\f',
    '"':  '"',
}

RADIXES = {'x': 16, 'b': 2, 'o': 8}
DIGITS  = '0123456789abcdefghijklmnopqrstuvwxyz'


# ── Lexer ─────────────────────────────────────────────────────────────────────

def _is_word_char(c: str) -> bool:
    return c.isalnum() or c == '_'


class Lexer:
    """Single left-to-right scan. Columns are 0-based, lines 1-based."""

    def __init__(self, source: str):
        self.src    = source
        self.pos    = 0
        self.line   = 1
        self.col    = 0
        self._line  = 1     # where the current token started
        self._start = 0
        self.tokens: list = []

    def lex(self) -> list:
        while self.pos < len(self.src):
            self._line  = self.line
            self._start = self.col
            self._next()
        self._line  = self.line
        self._start = self.col
        self._add(K.EOF)
        log.debug('lexed %d tokens over %d lines', len(self.tokens), self.line)
        return self.tokens

    # ── Characters ────────────────────────────────────────────────────────────

    def _peek(self) -> str:
        return self.src[self.pos] if self.pos < len(self.src) else ''

    def _advance(self) -> str:
        if self.pos >= len(self.src):
            raise self._error('Unexpected end of input')
        c = self.src[self.pos]
        self.pos += 1
        self.col += 1
        if c == '\n':
            self.line += 1
            self.col = 0
        return c

    def _error(self, message: str) -> LexError:
        length = self.col - self._start if self.line == self._line else None
        return LexError(message, self._line, self._start, length)

    def _add(self, kind, value=None):
        self.tokens.append(Token(kind, value, self._line, self._start))

    # ── Tokens ────────────────────────────────────────────────────────────────

    def _next(self):
        c = self._advance()
        if c in ' \t\r\n':
            return
        if c in SYMBOLS:
            self._add(SYMBOLS[c])
        elif c == '#':
            self._comment()
        elif c == '"':
            self._string()
        elif c == "'":
            self._character()
        elif c.isdigit():
            self._number(c)
        else:
            self._word(c)

    def _comment(self):
        # ends at a newline or at a second '#', whichever comes first
        while self.pos < len(self.src):
            if self._advance() in '\n#':
                return

    def _escape(self) -> str:
        e = self._advance()
        if e not in ESCAPES:
            raise self._error(f'Invalid escape sequence: \\{e}')
        return ESCAPES[e]

    def _character(self):
        if self.pos >= len(self.src):
            raise self._error('Unterminated character literal')
        c = self._advance()
        if c == '\\':
            c = self._escape()
        if self._peek() != "'":
            raise self._error("Character literal must be closed with '")
        self._advance()
        self._add(K.CHAR, ord(c))

    def _string(self):
        chars = []
        while True:
            if self.pos >= len(self.src):
                raise self._error('Unterminated string literal')
            c = self._advance()
            if c == '"':
                break
            if c == '\\':
                c = self._escape()
            chars.append(c)
        self._add(K.STRING, ''.join(chars))

    def _number(self, first: str):
        radix = 10
        if first == '0' and self._peek() in RADIXES:
            radix = RADIXES[self._advance()]
            digits = ''
        else:
            digits = first
        while _is_word_char(self._peek()):
            c = self._advance()
            if c != '_':
                digits += c
        valid = DIGITS[:radix]
        if not digits or any(c.lower() not in valid for c in digits):
            raise self._error(f'Value not an integer: {digits}')
        value = int(digits, radix)
        if value > INT_MAX:
            raise self._error(f'Value not an integer: {digits}')
        self._add(K.CHARACTER, value)

    def _word(self, first: str):
        word = first
        if _is_word_char(first):
            while _is_word_char(self._peek()):
                word += self._advance()
        kind = KEYWORDS.get(word)
        if kind is None:
            self._add(K.IDENTIFIER, word)
        else:
            self._add(kind)


def lex(source: str) -> list:
    return Lexer(source).lex()


# ── Value stack ───────────────────────────────────────────────────────────────

class IntStack:
    """Growable LIFO of ints. Storage doubles when full and never shrinks."""

    def __init__(self, capacity: int = INITIAL_CAPACITY):
        self._values = [0] * capacity
        self._top    = -1

    @property
    def capacity(self) -> int:
        return len(self._values)

    def __len__(self):
        return self._top + 1

    def is_empty(self) -> bool:
        return self._top < 0

    def push(self, value: int):
        if self._top == len(self._values) - 1:
            self._values.extend([0] * max(len(self._values), 1))
        self._top += 1
        self._values[self._top] = value

    def pop(self) -> int:
        if self._top < 0:
            raise StackUnderflow('Cannot pop below zero')
        self._top -= 1
        return self._values[self._top + 1]

    def peek(self) -> int:
        if self._top < 0:
            raise StackUnderflow('Cannot peek empty stack')
        return self._values[self._top]

    def try_pop(self) -> int | None:
        return None if self._top < 0 else self.pop()

    def apply2(self, fn: Callable[[int, int], int]):
        right = self.pop()
        left  = self.pop()
        self.push(fn(left, right))

    def swap(self):
        a = self.pop()
        b = self.pop()
        self.push(a)
        self.push(b)


# ── Stack frame ───────────────────────────────────────────────────────────────

class StackFrame:
    __slots__ = ('stack', 'variables', 'position')

    def __init__(self):
        self.stack     = IntStack()
        self.variables: dict = {}
        self.position  = 0


class FunctionData(NamedTuple):
    position:    int
    param_count: int
    name:        str


# ── Arithmetic ────────────────────────────────────────────────────────────────

def _div(a, b):
    q = abs(a) // abs(b)
    return q if (a < 0) == (b < 0) else -q     # truncate toward zero


def _mod(a, b):
    return a - b * _div(a, b)                 # sign follows the dividend


BINARY_OPS = {
    K.PLUS:    lambda a, b: a + b,
    K.MINUS:   lambda a, b: a - b,
    K.STAR:    lambda a, b: a * b,
    K.SLASH:   _div,
    K.PERCENT: _mod,
    K.AND:     lambda a, b: a & b,
    K.OR:      lambda a, b: a | b,
    K.XOR:     lambda a, b: a ^ b,
}


# ── Interpreter ───────────────────────────────────────────────────────────────

class Interpreter:
    def __init__(self, stdout=None, stdin=None, stack_limit: int = STACK_LIMIT):
        self.stdout      = stdout
        self.stdin       = stdin
        self.stack_limit = stack_limit
        self.frames:    list = []
        self.labels:    dict = {}
        self.functions: dict = {}
        self.program:   list = []
        self.position = 0
        self._ops = {
            K.CHARACTER:  self._literal,
            K.CHAR:       self._literal,
            K.AMPERSAND:  self._store,
            K.AT:         self._load,
            K.PLUS:       self._binary,
            K.MINUS:      self._binary,
            K.STAR:       self._binary,
            K.SLASH:      self._binary,
            K.PERCENT:    self._binary,
            K.AND:        self._binary,
            K.OR:         self._binary,
            K.XOR:        self._binary,
            K.BNOT:       self._bnot,
            K.NOT:        self._not,
            K.DUP:        self._dup,
            K.SWAP:       self._swap,
            K.POP:        self._pop,
            K.OUT:        self._out,
            K.NOUT:       self._nout,
            K.IN:         self._in,
            K.STRING:     self._string,
            K.COLUMN:     self._label,
            K.GOTO:       self._goto,
            K.FUNCTION:   self._function_header,
            K.IDENTIFIER: self._call,
            K.RETURN:     self._return,
        }

    # ── Public ────────────────────────────────────────────────────────────────

    def run(self, tokens: list) -> int:
        if not tokens or tokens[-1].kind is not K.EOF:
            tokens = list(tokens) + [Token(K.EOF)]
        self.program   = tokens
        self.frames    = [StackFrame()]
        self.labels    = {}
        self.functions = {}
        self.position  = 0

        self._index()
        log.debug('indexed %d labels, %d functions',
                  len(self.labels), len(self.functions))

        self.position = 0
        try:
            while self._has_next():
                self._ops[self._peek().kind]()
        except StackUnderflow as e:
            raise self._error(str(e)) from e

        result = self.frames[0].stack.try_pop()
        log.debug('finished with exit code %s', result)
        return 0 if result is None else result

    # ── Pass 1 ────────────────────────────────────────────────────────────────

    def _index(self):
        while self._has_next():
            kind = self._advance().kind
            if kind is K.COLUMN:
                self.labels[self._expect(K.IDENTIFIER).value] = self.position
            elif kind is K.FUNCTION:
                fn = self._read_header()
                self.functions[fn.name] = fn

    def _read_header(self) -> FunctionData:
        name  = self._expect(K.IDENTIFIER).value
        count = self._expect(K.CHARACTER).value
        return FunctionData(self.position, count, name)

    # ── Token cursor ──────────────────────────────────────────────────────────

    def _has_next(self) -> bool:
        return self.position < len(self.program) - 1     # last token is EOF

    def _peek(self) -> Token:
        if self.position >= len(self.program):
            return Token(K.EOF)
        return self.program[self.position]

    def _advance(self) -> Token:
        tok = self._peek()
        if self.position < len(self.program):
            self.position += 1
        return tok

    def _expect(self, kind, message=None) -> Token:
        if self._peek().kind is kind:
            return self._advance()
        raise self._error(message or
                          f"Expected token '{kind}' but found '{self._peek().kind}'")

    def _error(self, message: str) -> RunError:
        last = self.program[max(self.position - 1, 0)]
        nxt  = self._peek()
        if nxt.line == last.line:
            length = nxt.column - last.column
        else:
            length = None   # the renderer has the source and can work it out
        log.debug('fault at %d:%d: %s', last.line, last.column, message)
        return RunError(message, last.line, last.column, length)

    # ── Frame access ──────────────────────────────────────────────────────────

    @property
    def stack(self) -> IntStack:
        return self.frames[-1].stack

    @property
    def variables(self) -> dict:
        return self.frames[-1].variables

    def _write(self, s: str):
        out = self.stdout if self.stdout is not None else sys.stdout
        try:
            out.write(s)
        except UnicodeEncodeError as e:
            bad = ', '.join(str(ord(c)) for c in e.object[e.start:e.end])
            raise self._error(f'Value {bad} cannot be written as {e.encoding}') from None
        out.flush()

    # ── Values ────────────────────────────────────────────────────────────────

    def _literal(self):
        self.stack.push(self._advance().value)

    def _store(self):
        self._advance()
        name = self._expect(K.IDENTIFIER).value
        self.variables[name] = self.stack.pop()

    def _load(self):
        self._advance()
        name = self._expect(K.IDENTIFIER).value
        if name not in self.variables:
            raise self._error(f"Variable '{name}' is not defined")
        self.stack.push(self.variables[name])

    # ── Operators ─────────────────────────────────────────────────────────────

    def _binary(self):
        kind = self._advance().kind
        if kind in (K.SLASH, K.PERCENT) and self.stack.peek() == 0:
            what = 'Division' if kind is K.SLASH else 'Modulo'
            raise self._error(f'{what} by zero')
        fn = BINARY_OPS[kind]
        self.stack.apply2(lambda a, b: to_int32(fn(a, b)))

    def _bnot(self):
        self._advance()
        self.stack.push(~self.stack.pop())

    def _not(self):
        self._advance()
        self.stack.push(1 if self.stack.pop() == 0 else 0)

    def _dup(self):
        self._advance()
        if self.stack.is_empty():
            raise self._error('Cannot dup empty stack')
        self.stack.push(self.stack.peek())

    def _swap(self):
        self._advance()
        if len(self.stack) < 2:
            raise self._error('Cannot swap with fewer than two values on the stack')
        self.stack.swap()

    def _pop(self):
        self._advance()
        if self.stack.is_empty():
            raise self._error('Cannot pop empty stack')
        self.stack.pop()

    # ── IO ────────────────────────────────────────────────────────────────────

    def _out(self):
        self._advance()
        if self.stack.is_empty():
            raise self._error('Cannot pop empty stack')
        value = self.stack.pop()
        if not 0 <= value <= 0x10FFFF or 0xD800 <= value <= 0xDFFF:
            raise self._error(f'Value {value} is not a character')
        self._write(chr(value))

    def _nout(self):
        self._advance()
        if self.stack.is_empty():
            raise self._error('Cannot pop empty stack')
        self._write(str(self.stack.pop()))

    def _in(self):
        self._advance()
        src = self.stdin if self.stdin is not None else sys.stdin
        src = getattr(src, 'buffer', src)   # raw bytes when the stream has them
        try:
            data = src.read(1)
        except OSError as e:
            raise self._error(f'Error reading input: {e}') from e
        self.stack.push(ord(data) if data else EOF_INPUT)

    def _string(self):
        text = self._advance().value
        self._expect(K.OUT, 'String can only be used together with out')
        self._write(text)

    # ── Control flow ──────────────────────────────────────────────────────────

    def _label(self):
        self._advance()
        self._expect(K.IDENTIFIER)

    def _goto(self):
        self._advance()
        label = self._expect(K.IDENTIFIER).value
        if self.stack.peek() != 0:
            if label not in self.labels:
                raise self._error(f"Label '{label}' not found")
            self.position = self.labels[label]

    def _function_header(self):
        self._advance()
        self._read_header()

    def _call(self):
        name = self._advance().value
        fn = self.functions.get(name)
        if fn is None:
            raise self._error(f"Function '{name}' not found")
        if len(self.frames) >= self.stack_limit:
            raise self._error(
                f'Stackoverflow, limit of {self.stack_limit} stack frames reached')

        caller = self.frames[-1]
        caller.position = self.position
        args = [caller.stack.pop() for _ in range(fn.param_count)]
        frame = StackFrame()
        for value in reversed(args):
            frame.stack.push(value)
        self.frames.append(frame)
        self.position = fn.position

    def _return(self):
        self._advance()
        value = self.stack.try_pop()
        if value is None:
            raise self._error(
                'Function has to return some value, but no value was found on the stack')
        if len(self.frames) == 1:
            raise self._error(
                'Tried to return outside of function, probably forgot to skip a function')
        self.frames.pop()
        self.stack.push(value)
        self.position = self.frames[-1].position


def run_source(source: str, stdout=None, stdin=None,
               stack_limit: int = STACK_LIMIT) -> int:
    return Interpreter(stdout, stdin, stack_limit).run(lex(source))


# ── Tests ─────────────────────────────────────────────────────────────────────

# (source, exit code, printed output)
CASES = [
    # Arithmetic
    ('1 1 * 2 +',                     3,    ''),
    ('1000 1234 +',                   2234, ''),
    ('10 5 /',                        2,    ''),
    ('7 2 -',                         5,    ''),
    ('0 7 - 2 /',                     -3,   ''),    # truncates toward zero
    ('0 7 - 2 %',                     -1,   ''),
    ('17 5 %',                        2,    ''),
    ('2147483647 1 +',                -2147483648, ''),

    # Comments
    ('1 # sdkfjsaf se9 83 252h43ui\n 2 # test 5 # +', 3, ''),

    # Variables
    ('1 &one 2 &two 3 &three 8 @two +', 10, ''),

    # Labels and goto
    ('1 :first 2 0',                  0,    ''),
    ('1 :first 0 goto first 1 goto skip 3754 78349758 :skip', 1, ''),
    ('3 &i :loop @i nout @i 1 - &i @i goto loop', 0, '321'),

    # Stack manipulation
    ('1 2 swap',                      1,    ''),
    ('0 not',                         1,    ''),
    ('1 not',                         0,    ''),
    ('5 dup pop',                     5,    ''),
    ('1 2 pop',                       1,    ''),

    # Bitwise
    ('10 10 xor',                     0,    ''),
    ('1 bnot',                        -2,   ''),
    ('255 1 and',                     1,    ''),
    ('0b001 0b101 or',                5,    ''),
    ('0xFF 0o17 and',                 15,   ''),

    # IO
    ("'\\n' '!' 'd' 'l' 'r' 'o' 'w' ' ' 'o' 'l' 'l' 'e' 'h' "
     "out out out out out out out out out out out out out 0", 0, 'hello world!\n'),
    ('"hallo" out \'t\' out',         0,    'hallot'),
    ('42 nout',                       0,    '42'),

    # Functions
    ('1 printNumber 2 printNumber 3 printNumber 1 goto end '
     'function printNumber 1 nout 0 return :end 0', 0, '123'),
    ('5 3 sub 1 goto end function sub 2 - return :end pop', 2, ''),
]


def check_case(src: str, code: int, output: str) -> str | None:
    """Run one case with empty input. Returns None on a match, else what differed."""
    out = io.StringIO()
    try:
        got = run_source(src, stdout=out, stdin=io.StringIO())
    except GrsbplError as e:
        return f'{type(e).__name__} at {e.line}:{e.column}: {e.message}'
    if got != code:
        return f'exit code {got}, expected {code}'
    if out.getvalue() != output:
        return f'printed {out.getvalue()!r}, expected {output!r}'
    return None


def run_tests():
    failed = 0
    for src, code, output in CASES:
        problem = check_case(src, code, output)
        if problem:
            failed += 1
            print(f'  FAIL {src[:60]!r}\n       {problem}')
    passed = len(CASES) - failed
    print(f'GRSBPL self-check: {passed}/{len(CASES)} cases')
    return passed, len(CASES)


if __name__ == '__main__':
    p, t = run_tests()
    sys.exit(0 if p == t else 1)
