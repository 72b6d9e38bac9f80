import pytest

from vcdfile.errors import Location, ScanError
from vcdfile.scanner import Token, TokenKind
from tests.conftest import COUNTER_VCD, scan


def test_timestamp():
    assert scan('#10') == [Token(TokenKind.TIMESTAMP, 10, location=Location(1, 0))]


def test_scalar_is_lowercased():
    [token] = scan('X!')
    assert token.kind is TokenKind.SCALAR
    assert token.value == 'x'
    assert token.id_code == '!'


def test_vector_real_string():
    tokens = scan('b10X1 ab r3.25 $ s"hello world" %')
    assert [(t.kind, t.value, t.id_code) for t in tokens] == [
        (TokenKind.VECTOR, '10x1', 'ab'),
        (TokenKind.REAL, 3.25, '$'),
        (TokenKind.STRING, 'hello world', '%'),
    ]


def test_identifier_code_may_look_like_a_timestamp():
    [token] = scan('r0.5 #')
    assert token.kind is TokenKind.REAL
    assert token.id_code == '#'


def test_declaration_body_collected():
    [token] = scan('$var wire 8 # data [7:0] $end')
    assert token.kind is TokenKind.KEYWORD
    assert token.value == '$var'
    assert token.body == ('wire', '8', '#', 'data', '[7:0]')


def test_dump_keywords_are_bare():
    tokens = scan('$dumpvars 1! $end')
    assert [t.kind for t in tokens] == [TokenKind.KEYWORD, TokenKind.SCALAR, TokenKind.END]


def test_comment_not_interpreted():
    tokens = scan('$comment anything $var goes #1 $end #2')
    assert tokens[0].kind is TokenKind.COMMENT
    assert tokens[0].value == 'anything $var goes #1'
    assert tokens[1].value == 2


def test_unknown_block_skipped():
    tokens = scan('$attrbegin misc 07 foo $end #2')
    assert [(t.kind, t.value) for t in tokens] == [(TokenKind.TIMESTAMP, 2)]


def test_line_tracking():
    tokens = scan('\n\n  #5\n1!')
    assert tokens[0].location == Location(3, 4)
    assert tokens[1].location == Location(4, 7)


@pytest.mark.parametrize('text', [
    's"abc %',
    '$comment no end',
    '$var wire 1 ! a',
    '#1a',
    '#',
    'b01',
    'b01 $end',
    'b012 !',
    'rabc !',
    '1',
    'q!',
])
def test_scan_errors(text):
    with pytest.raises(ScanError):
        scan(text)


def test_unterminated_quote_location():
    with pytest.raises(ScanError) as excinfo:
        scan('#1\ns"abc %')
    assert excinfo.value.location.line == 2


@pytest.mark.parametrize('buffer_size', [1, 2, 3, 5, 8, 13, 64])
def test_chunked_reads_match_bulk(buffer_size):
    assert scan(COUNTER_VCD, buffer_size) == scan(COUNTER_VCD)


def test_double_quote_identifier_code():
    tokens = scan('1" b01 " r2.5 " s"a b" "')
    assert [(t.kind, t.value, t.id_code) for t in tokens] == [
        (TokenKind.SCALAR, '1', '"'),
        (TokenKind.VECTOR, '01', '"'),
        (TokenKind.REAL, 2.5, '"'),
        (TokenKind.STRING, 'a b', '"'),
    ]


def test_stray_quote_in_comment():
    tokens = scan('$comment he said "hi $end #1')
    assert tokens[0].kind is TokenKind.COMMENT
    assert tokens[0].value == 'he said "hi'
    assert tokens[1].value == 1


@pytest.mark.parametrize('buffer_size', [1, 2, 3, 4])
def test_quoted_string_across_chunks(buffer_size):
    [token] = scan('s"a b c" !', buffer_size)
    assert (token.value, token.id_code) == ('a b c', '!')
