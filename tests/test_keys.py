import pytest

from fzfkit.tui.events import EventType, alt_key, ctrl_alt_key, key
from fzfkit.tui.keys import KeyDecoder


def decode(data, **kwargs):
    decoder = KeyDecoder(**kwargs)
    decoder.push(data)
    return decoder.get_char()


@pytest.mark.parametrize(
    "data, expected",
    [
        (b"\x03", EventType.CTRL_C),
        (b"\x07", EventType.CTRL_G),
        (b"\x11", EventType.CTRL_Q),
        (b"\x7f", EventType.BSPACE),
        (b"\x00", EventType.CTRL_SPACE),
        (b"\x1c", EventType.CTRL_BACK_SLASH),
        (b"\x1d", EventType.CTRL_RIGHT_BRACKET),
        (b"\x1e", EventType.CTRL_CARET),
        (b"\x1f", EventType.CTRL_SLASH),
        (b"\x01", EventType.CTRL_A),
        (b"\x09", EventType.TAB),
        (b"\x0d", EventType.CTRL_M),
        (b"\x1a", EventType.CTRL_Z),
        (b"\x1b", EventType.ESC),
        (b"\x1b\x1b", EventType.ESC),
        (b"\x1b\x7f", EventType.ALT_BS),
        (b"\x1b[A", EventType.UP),
        (b"\x1b[B", EventType.DOWN),
        (b"\x1b[C", EventType.RIGHT),
        (b"\x1b[D", EventType.LEFT),
        (b"\x1bOA", EventType.UP),
        (b"\x1b\x1b[A", EventType.ALT_UP),
        (b"\x1b\x1b[D", EventType.ALT_LEFT),
        (b"\x1b[Z", EventType.BTAB),
        (b"\x1b[H", EventType.HOME),
        (b"\x1b[F", EventType.END),
        (b"\x1bOP", EventType.F1),
        (b"\x1bOS", EventType.F4),
        (b"\x1b[2~", EventType.INSERT),
        (b"\x1b[3~", EventType.DEL),
        (b"\x1b[3;5~", EventType.CTRL_DELETE),
        (b"\x1b[3;2~", EventType.S_DELETE),
        (b"\x1b[4~", EventType.END),
        (b"\x1b[5~", EventType.PG_UP),
        (b"\x1b[6~", EventType.PG_DN),
        (b"\x1b[1~", EventType.HOME),
        (b"\x1b[11~", EventType.F1),
        (b"\x1b[15~", EventType.F5),
        (b"\x1b[17~", EventType.F6),
        (b"\x1b[19~", EventType.F8),
        (b"\x1b[20~", EventType.F9),
        (b"\x1b[21~", EventType.F10),
        (b"\x1b[23~", EventType.F11),
        (b"\x1b[24~", EventType.F12),
        (b"\x1b[1;2A", EventType.S_UP),
        (b"\x1b[1;5D", EventType.S_LEFT),
        (b"\x1b[1;3B", EventType.ALT_DOWN),
        (b"\x1b[1;3C", EventType.ALT_RIGHT),
        (b"\x1b[1;10C", EventType.ALT_S_RIGHT),
        (b"\x1b[1;10A", EventType.ALT_S_UP),
        (b"\x1b[12;3R", EventType.INVALID),
        (b"\xff", EventType.ESC),
    ],
)
def test_event_types(data, expected):
    assert decode(data).type == expected


def test_plain_characters():
    assert decode(b"a") == key("a")
    assert decode("한".encode()) == key("한")


def test_alt_and_ctrl_alt_keys():
    assert decode(b"\x1ba") == alt_key("a")
    assert decode(b"\x1b\x01") == ctrl_alt_key("a")
    assert decode(b"\x1b\x1a") == ctrl_alt_key("z")


def test_sequence_of_events_consumes_buffer():
    decoder = KeyDecoder()
    decoder.push(b"ab\x1b[A\x1b[1;2B")
    events = [decoder.get_char() for _ in range(4)]
    assert events == [
        key("a"),
        key("b"),
        EventType.UP.as_event(),
        EventType.S_DOWN.as_event(),
    ]
    with pytest.raises(EOFError):
        decoder.get_char()


def test_empty_buffer_raises():
    with pytest.raises(EOFError):
        KeyDecoder().get_char()


def test_bracketed_paste_marker_is_dropped():
    assert decode(b"\x1b[200~x") == key("x")


def test_reader_supplies_input():
    decoder = KeyDecoder(read=lambda: b"z")
    assert decoder.get_char() == key("z")


def test_incomplete_escape_gets_second_chance():
    chunks = [b"A"]
    decoder = KeyDecoder(read=lambda: chunks.pop(0) if chunks else b"")
    decoder.push(b"\x1b[")
    assert decoder.get_char().type == EventType.UP
    assert chunks == []


def test_mouse_click():
    event = decode(b"\x1b[<0;5;3M", mouse=True)
    assert event.type == EventType.MOUSE
    me = event.mouse_event
    assert (me.y, me.x, me.s) == (2, 4, 0)
    assert me.left and me.down and not me.double and not me.mod


def test_mouse_yoffset_and_release():
    event = decode(b"\x1b[<0;5;3m", mouse=True, yoffset=1)
    assert event.mouse_event.y == 1
    assert not event.mouse_event.down


def test_mouse_scroll():
    up = decode(b"\x1b[<64;1;1M", mouse=True).mouse_event
    down = decode(b"\x1b[<65;1;1M", mouse=True).mouse_event
    assert up.s == 1
    assert down.s == -1
    assert not up.left and not up.down


def test_mouse_disabled_is_invalid():
    assert decode(b"\x1b[<0;5;3M", mouse=False).type == EventType.INVALID


def _clicks(times):
    clock = iter(times)
    decoder = KeyDecoder(mouse=True, clock=lambda: next(clock))
    results = []
    for _ in range(2):
        decoder.push(b"\x1b[<0;5;3M")
        results.append(decoder.get_char())
        decoder.push(b"\x1b[<0;5;3m")
        results.append(decoder.get_char())
    return results


def test_double_click():
    events = _clicks([0.0, 0.05, 0.1, 0.2])
    assert [e.mouse_event.double for e in events] == [False, False, False, True]


def test_slow_clicks_are_not_double():
    events = _clicks([0.0, 0.05, 1.0, 1.1])
    assert not any(e.mouse_event.double for e in events)