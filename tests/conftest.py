import io

import pytest

from vcdfile.header import parse_header
from vcdfile.scanner import tokenize

CLK_VCD = (
    "$timescale 1ns $end $scope module top $end $var wire 1 ! clk $end "
    "$upscope $end $enddefinitions $end #0 0! #5 1! #10 0!"
)

CLK_REGRESSION_VCD = (
    "$timescale 1ns $end $scope module top $end $var wire 1 ! clk $end "
    "$upscope $end $enddefinitions $end #0 0! #5 1! #4 1! #10 0!"
)

COUNTER_VCD = """$date
   Mon Jan 1 00:00:00 2024
$end
$version
   Icarus Verilog
$end
$comment generated for tests $end
$timescale 10ps $end
$scope module tb $end
$var wire 1 ! clk $end
$var reg 4 " count [3:0] $end
$var real 64 # vref $end
$var string 1 % label $end
$scope module dut $end
$var wire 1 ! clk $end
$var wire 8 $ data [7:0] $end
$upscope $end
$upscope $end
$enddefinitions $end
$dumpvars
0!
b0 "
r0.5 #
sidle %
bx $
$end
#10
1!
b1 "
#20
0!
b10 "
b1010 $
#30
1!
b11 "
r1.25 #
s"run fast" %
#40
"""


def scan(text, buffer_size=None):
    return list(tokenize(io.BytesIO(text.encode()), buffer_size))


def header_of(text):
    return parse_header(tokenize(io.BytesIO(text.encode())))


@pytest.fixture
def counter_file(tmp_path):
    path = tmp_path / 'counter.vcd'
    path.write_text(COUNTER_VCD)
    return path


@pytest.fixture
def clk_file(tmp_path):
    path = tmp_path / 'clk.vcd'
    path.write_text(CLK_VCD)
    return path
