import io

import pytest

from vcdfile.changes import Event, State, ValueChangeParser, extend_bits
from vcdfile.errors import StreamError
from vcdfile.header import parse_header
from vcdfile.scanner import tokenize

HEADER = (
    '$scope module top $end '
    '$var wire 1 ! clk $end '
    '$var wire 4 " bus [3:0] $end '
    '$var real 64 # v $end '
    '$var string 1 % s $end '
    '$upscope $end $enddefinitions $end\n'
)


def events_of(text, **kwargs):
    tokens = tokenize(io.BytesIO((HEADER + text).encode()))
    header = parse_header(tokens)
    return list(ValueChangeParser(header, **kwargs).parse(tokens))


@pytest.mark.parametrize('bits, width, expected', [
    ('1', 4, '0001'),
    ('0', 3, '000'),
    ('x1', 4, 'xxx1'),
    ('z', 2, 'zz'),
    ('1010', 4, '1010'),
])
def test_extend_bits(bits, width, expected):
    assert extend_bits(bits, width) == expected


def test_changes_before_first_timestamp_are_at_zero():
    assert events_of('1! #3 0!') == [Event('!', 0, '1'), Event('!', 3, '0')]


def test_state_machine():
    tokens = tokenize(io.BytesIO((HEADER + '1! #3 0!').encode()))
    parser = ValueChangeParser(parse_header(tokens))
    events = parser.parse(tokens)
    assert parser.state is State.AWAITING_TIMESTAMP
    next(events)
    assert parser.state is State.AWAITING_TIMESTAMP
    next(events)
    assert parser.state is State.AT_TIMESTAMP
    assert parser.timestamp == 3


def test_dumpvars_at_current_time():
    events = events_of('#7 $dumpvars 1! b1 " r2.5 # sidle % $end #8 0!')
    assert events == [
        Event('!', 7, '1'),
        Event('"', 7, '0001'),
        Event('#', 7, 2.5),
        Event('%', 7, 'idle'),
        Event('!', 8, '0'),
    ]


def test_dumpvars_before_first_timestamp():
    assert events_of('$dumpvars 0! $end #1 1!')[0] == Event('!', 0, '0')


def test_dumpoff_dumpon_blocks():
    events = events_of('#1 $dumpoff x! $end #4 $dumpon 1! $end')
    assert events == [Event('!', 1, 'x'), Event('!', 4, '1')]


@pytest.mark.parametrize('text, value', [
    ('bx "', 'xxxx'),
    ('bz1 "', 'zzz1'),
    ('x"', 'xxxx'),
    ('1"', '0001'),
    ('b11 "', '0011'),
    ('bxxxxxxx "', 'xxxx'),
    ('bZZZZZ "', 'zzzz'),
    ('b1x "', '001x'),
])
def test_vector_width_handling(text, value):
    assert events_of(text) == [Event('"', 0, value)]


def test_extension_can_be_disabled():
    assert events_of('b1 "', extend_vectors=False) == [Event('"', 0, '1')]


def test_same_timestamp_writes_kept():
    assert events_of('#1 1! 0!') == [Event('!', 1, '1'), Event('!', 1, '0')]


def test_equal_timestamps_allowed():
    assert events_of('#2 1! #2 0!') == [Event('!', 2, '1'), Event('!', 2, '0')]


@pytest.mark.parametrize('text, message', [
    ('b10101 "', 'wider than top.bus'),
    ('1?', "Undeclared identifier code '?'"),
    ('r1.0 ?', "Undeclared identifier code '?'"),
    ('#5 #4', 'goes back from #5'),
    ('$scope module x $end', '$scope after $enddefinitions'),
    ('$var wire 1 & y $end', '$var after $enddefinitions'),
    ('#1 $end', 'Unexpected $end'),
    ('$dumpvars 1!', 'Unterminated $dumpvars'),
    ('$dumpvars $dumpall $end $end', 'inside $dumpvars'),
])
def test_stream_errors(text, message):
    with pytest.raises(StreamError) as excinfo:
        events_of(text)
    assert message in excinfo.value.message


def test_events_before_error_are_delivered():
    tokens = tokenize(io.BytesIO((HEADER + '#0 0! #5 1! #4 1! #10 0!').encode()))
    events = ValueChangeParser(parse_header(tokens)).parse(tokens)
    seen = []
    with pytest.raises(StreamError):
        for event in events:
            seen.append(event)
    assert seen == [Event('!', 0, '0'), Event('!', 5, '1')]


def test_first_timestamp_may_be_anywhere():
    tokens = tokenize(io.BytesIO((HEADER + '#0 1! #3 0!').encode()))
    parser = ValueChangeParser(parse_header(tokens))
    assert parser.timestamp == 0
    assert list(parser.parse(tokens)) == [Event('!', 0, '1'), Event('!', 3, '0')]
    assert parser.timestamp == 3


def test_regression_checked_only_after_a_timestamp():
    with pytest.raises(StreamError, match='goes back from #5'):
        events_of('1! #5 0! #2 1!')
