import pytest

from grsbpl import LexError, Token, TokenKind as K, lex


def kinds(tokens):
    return [t.kind for t in tokens]


def values(tokens):
    return [t.value for t in tokens if t.value is not None]


def test_keywords():
    src = 'out in nout xor or and not bnot pop dup swap goto function return not'
    assert kinds(lex(src)) == [
        K.OUT, K.IN, K.NOUT, K.XOR, K.OR, K.AND, K.NOT, K.BNOT, K.POP,
        K.DUP, K.SWAP, K.GOTO, K.FUNCTION, K.RETURN, K.NOT, K.EOF,
    ]


def test_symbols():
    assert kinds(lex('+ & @ - % / * : +')) == [
        K.PLUS, K.AMPERSAND, K.AT, K.MINUS, K.PERCENT, K.SLASH, K.STAR,
        K.COLUMN, K.PLUS, K.EOF,
    ]


def test_identifiers():
    tokens = lex('out test xor hallo + stack')
    assert kinds(tokens) == [K.OUT, K.IDENTIFIER, K.XOR, K.IDENTIFIER,
                             K.PLUS, K.IDENTIFIER, K.EOF]
    assert tokens[1] == Token(K.IDENTIFIER, 'test', 1, 4)


def test_identifier_names():
    assert values(lex('test ABC g9tgq fe_53f _x')) == ['test', 'ABC', 'g9tgq', 'fe_53f', '_x']


def test_operators_need_no_whitespace():
    assert kinds(lex('1 2+&x@x')) == [K.CHARACTER, K.CHARACTER, K.PLUS, K.AMPERSAND,
                                      K.IDENTIFIER, K.AT, K.IDENTIFIER, K.EOF]


def test_numbers():
    tokens = lex('out 347 test 64006 in')
    assert kinds(tokens) == [K.OUT, K.CHARACTER, K.IDENTIFIER, K.CHARACTER, K.IN, K.EOF]
    assert tokens[1] == Token(K.CHARACTER, 347, 1, 4)


@pytest.mark.parametrize('src, expected', [
    ('0xFFF 0xa4 0x10 1_000', [0xFFF, 0xA4, 0x10, 1000]),
    ('0b101 0b1_0000',        [5, 16]),
    ('0o17 0 007',            [15, 0, 7]),
    ('2147483647',            [2147483647]),
])
def test_alternative_numbers(src, expected):
    assert values(lex(src)) == expected


def test_chars():
    src = r"'h' '\n' '\r' '\f' '\\' '\b' '\'' '\0' '\"'"
    tokens = lex(src)
    assert set(kinds(tokens)) == {K.CHAR, K.EOF}
    assert values(tokens) == [ord(c) for c in 'h\n\r\f\\\b\'\0"']


def test_strings():
    tokens = lex(r'"hallo" "test" ' + "'t' " + r'"hallo\"test\n"')
    assert kinds(tokens) == [K.STRING, K.STRING, K.CHAR, K.STRING, K.EOF]
    assert tokens[0].value == 'hallo'
    assert tokens[3].value == 'hallo"test\n'


def test_empty_string():
    assert lex('""')[0] == Token(K.STRING, '', 1, 0)


@pytest.mark.parametrize('src', [
    'goto # hallo # goto #test\n goto',
    '# only a comment\ngoto goto goto',
    'goto goto goto # runs to the end of input',
])
def test_comments(src):
    assert kinds(lex(src)) == [K.GOTO, K.GOTO, K.GOTO, K.EOF]


def test_line_numbers():
    tokens = lex('goto \n \n goto \ngoto')
    assert kinds(tokens) == [K.GOTO, K.GOTO, K.GOTO, K.EOF]
    assert tokens[0] == Token(K.GOTO, None, 1, 0)
    assert tokens[1] == Token(K.GOTO, None, 3, 1)
    assert tokens[2] == Token(K.GOTO, None, 4, 0)


def test_token_starts_where_literal_starts():
    tokens = lex('1 "a\nb" 2')
    assert tokens[1] == Token(K.STRING, 'a\nb', 1, 2)
    assert tokens[2] == Token(K.CHARACTER, 2, 2, 3)


def test_unknown_character_is_an_identifier():
    assert lex('!')[0] == Token(K.IDENTIFIER, '!', 1, 0)


def test_empty_source():
    assert lex('') == [Token(K.EOF, None, 1, 0)]


def test_token_display():
    assert str(Token(K.PLUS, None, 2, 3)) == '+@2:3'
    assert str(Token(K.IDENTIFIER, 'x', 1, 0)) == "IDENTIFIER('x')@1:0"


# ── Errors ────────────────────────────────────────────────────────────────────

def test_invalid_escape():
    with pytest.raises(LexError) as exc:
        lex("1 '\\q'")
    err = exc.value
    assert err.message == 'Invalid escape sequence: \\q'
    assert (err.line, err.column, err.length) == (1, 2, 3)


@pytest.mark.parametrize('src, digits', [
    ('12ab',        '12ab'),
    ('0b102',       '102'),
    ('0x',          ''),
    ('0x0x5',       '0x5'),
    ('2147483648',  '2147483648'),
])
def test_value_not_an_integer(src, digits):
    with pytest.raises(LexError, match='Value not an integer') as exc:
        lex(src)
    assert exc.value.message == f'Value not an integer: {digits}'
    assert (exc.value.line, exc.value.column) == (1, 0)
    assert exc.value.length == len(src)


def test_error_position_on_later_line():
    with pytest.raises(LexError) as exc:
        lex('1\n  99z')
    assert (exc.value.line, exc.value.column, exc.value.length) == (2, 2, 3)


@pytest.mark.parametrize('src, message', [
    ('"abc',   'Unterminated string literal'),
    ("'",      'Unterminated character literal'),
    ("'ab'",   "Character literal must be closed with '"),
    ("'a",     "Character literal must be closed with '"),
    ('"a\\',   'Unexpected end of input'),
])
def test_unterminated_literals(src, message):
    with pytest.raises(LexError) as exc:
        lex(src)
    assert exc.value.message == message
