# fzfkit

Building blocks for an interactive terminal fuzzy finder: splitting input
lines into fields, measuring display width, coordinating threads, decoding
terminal key sequences and drawing with plain ANSI escape sequences.

## Installation

```
pip install fzfkit
```

To run the test suite:

```
pip install "fzfkit[test]"
pytest
```

## Modules

### `fzfkit.tokenizer`

- `tokenize(text, delimiter)` splits a line into `Token`s. Each token keeps
  its trailing delimiter and its `prefix_length` (characters before it).
  `Delimiter()` splits AWK-style on runs of spaces and tabs,
  `Delimiter(string=":")` on a literal string, `Delimiter(regex=re.compile(...))`
  on a regular expression.
- `parse_range(text)` parses field expressions such as `3`, `..5`, `2..`,
  `..` or `-3..-1` into a `Range`; malformed expressions and index `0` raise
  `ValueError`.
- `transform(tokens, ranges)` builds one token per range from the selected
  fields; `join_tokens(tokens)` concatenates their text.

```python
from fzfkit.tokenizer import Delimiter, join_tokens, parse_range, tokenize, transform

tokens = tokenize("  abc:  def:  ghi:  jkl", Delimiter())
ranges = [parse_range(expr) for expr in "1..2,3".split(",")]
print(join_tokens(transform(tokens, ranges)))  # "abc:  def:  ghi:  "
```

### `fzfkit.util`

- `fzfkit.util.chars`: `Chars`, a line of text that knows whether it is pure
  ASCII (`is_bytes`) and caches `trim_length()`; also
  `leading_whitespaces`, `trailing_whitespaces`, `trim_trailing_whitespaces`,
  `to_runes` and `prepend`. Build one with `to_chars(data)` (UTF-8 bytes or
  `str`) or `runes_to_chars(runes)`.
- `fzfkit.util.atomicbool`: `AtomicBool` with `get()` and `set(value)`.
- `fzfkit.util.eventbox`: `EventBox`, where threads `set(event, value)` and
  another thread blocks in `wait(callback)` or `wait_for(event)`; `peek`,
  `watch` and `unwatch` control which events wake waiters.
- `fzfkit.util.slab`: `make_slab(size16, size32)` returns a `Slab` of two
  zero-filled integer arrays.
- `fzfkit.util.common`: `string_width`, `runes_width`, `truncate` and
  `repeat_to_fill` work in terminal columns (grapheme clusters, wide
  characters, tabs); `constrain`, `as_uint16`, `dur_within` and `once` are
  small helpers; `is_tty`, `to_tty` and `is_windows` inspect the environment;
  `exec_command(command, setpgid)` and `exec_command_with(shell, command,
  setpgid)` return a callable that starts the command under `$SHELL` (or the
  given shell) with `subprocess.Popen`, and `kill_command(process)` kills it,
  with its process group outside Windows.

### `fzfkit.tui`

- `fzfkit.tui.events`: `EventType`, `Event`, `MouseEvent` and the helpers
  `key`, `alt_key`, `ctrl_alt_key`.
- `fzfkit.tui.borders`: `BorderShape`, `BorderStyle`,
  `make_border_style(shape, unicode)` and `make_transparent_border()`.
- `fzfkit.tui.colors`: `Attr`, `ColorAttr`, `ColorPair`, `ColorTheme`,
  `Palette`; `hex_to_color("#rrggbb")` and `is_24`; the themes
  `empty_theme`, `no_color_theme`, `default16`, `dark256`, `light256`;
  `init_theme(theme, base_theme, force_black)` fills undefined colors in
  place and returns the `Palette` from `init_palette(theme)`.
- `fzfkit.tui.keys`: `KeyDecoder` turns raw input bytes (control keys, arrow
  and function key sequences, Alt combinations, SGR mouse reports) into
  events. `get_char()` raises `EOFError` when no input is pending.

```python
from fzfkit.tui.events import EventType
from fzfkit.tui.keys import KeyDecoder

decoder = KeyDecoder()
decoder.push(b"\x1b[A")
assert decoder.get_char().type is EventType.UP
```

- `fzfkit.tui.ttyname`: `ttyname()` finds the device behind standard error;
  `tty_in()` opens `/dev/tty` for reading, falling back to `sys.stdin`.
- `fzfkit.tui.window`: `LightWindow`, a rectangular region with borders,
  `print`, `cprint`, `fill` and `cfill` (which wrap text and return a
  `FillReturn`), plus `wrap_line`, `attr_codes`, `color_codes` and `cleanse`.
- `fzfkit.tui.light`: `LightRenderer`, which puts the terminal in raw mode
  (`init`), draws inline below the cursor or on the alternate screen
  (`fullscreen=True`), reads events with `get_char`, and restores the
  terminal on `close`. Output goes to standard error unless `output=` is
  given. Windows are created with `new_window(...)` and written out by
  `refresh_windows`.

## What the package does not do

There is no matching or scoring algorithm, no item list or query prompt, and
no command to run: the package supplies the pieces such a program is built
from. `LightRenderer` is the only renderer; there is no cell-based
full-screen renderer, and `LightRenderer` needs a POSIX terminal
(`termios`), so it does not drive a Windows console.