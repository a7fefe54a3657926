import random

import pytest

from mathdelim import LaTeXProcessor, RecognitionRules, normalize_math_delimiters
from mathdelim.delimiters import DelimiterFamily
from mathdelim.rewriters import CONVERTED, NO_SPACING


def test_empty_string_unchanged():
    assert normalize_math_delimiters("") == ""


def test_plain_text_unchanged():
    assert normalize_math_delimiters("Hello, world!") == "Hello, world!"


def test_existing_dollar_math_unchanged():
    text = "Inline $x^2$ and block $$y = mx + b$$"
    assert normalize_math_delimiters(text) == text


# --- backslash brackets ---

def test_single_line_backslash_bracket():
    assert normalize_math_delimiters(r"\[y = ax^2 + bx + c\]") == r"$$y = ax^2 + bx + c$$"


def test_multi_line_backslash_bracket():
    assert normalize_math_delimiters("\\[\ny = ax^2\n\\]") == "$$\ny = ax^2\n$$"


# --- plain brackets ---

@pytest.mark.parametrize(
    "text, expected",
    [
        (r"[ y = ax^{2}+bx+c \qquad (a\neq 0) ]", r"$$y = ax^{2}+bx+c \qquad (a\neq 0)$$"),
        (r"[ y = a\bigl(x-h\bigr)^{2}+k ]", r"$$y = a\bigl(x-h\bigr)^{2}+k$$"),
        ("[ y = ax^2+bx+c ]", "$$y = ax^2+bx+c$$"),
        ("    [ x^2 + 1 ]", "    $$x^2 + 1$$"),
    ],
)
def test_plain_bracket_block(text, expected):
    assert normalize_math_delimiters(text) == expected


@pytest.mark.parametrize(
    "text",
    [
        "[link text](https://example.com)",
        "[ ] unchecked item",
        "[ok]",
        "- [ ] todo\n- [x] done",
        "[[Wiki Page]]",
        "[^1]: footnote",
    ],
)
def test_plain_bracket_look_alikes_unchanged(text):
    assert normalize_math_delimiters(text) == text


# --- backslash parens ---

def test_backslash_paren():
    assert (
        normalize_math_delimiters(r"The value is \(\frac{a}{b}\) here")
        == r"The value is $\frac{a}{b}$ here"
    )


# --- spaced parens ---

@pytest.mark.parametrize(
    "text, expected",
    [
        ("Solve ( x^2 - 9 = 0 )", "Solve $x^2 - 9 = 0$"),
        ("Given ( 3x^2 + 2x - 1 = 0 )", "Given $3x^2 + 2x - 1 = 0$"),
        ("( x^2 + 4x + 1 = 0 )", "$x^2 + 4x + 1 = 0$"),
        ("Solve ( 5x^2 - 3x - 2 = 0 )", "Solve $5x^2 - 3x - 2 = 0$"),
        (r"Answer: ( x = -\frac{2}{5} )", r"Answer: $x = -\frac{2}{5}$"),
        (r"vertex formula: ( x = -\frac{b}{2a} ).", r"vertex formula: $x = -\frac{b}{2a}$."),
        (r"coefficient: ( \frac{b}{a} ).", r"coefficient: $\frac{b}{a}$."),
        (r"Halve it: ( \displaystyle \frac{b}{2a} ).", r"Halve it: $\displaystyle \frac{b}{2a}$."),
    ],
)
def test_spaced_paren_math(text, expected):
    assert normalize_math_delimiters(text) == expected


@pytest.mark.parametrize(
    "text",
    [
        "This is (just a note) in parens",
        "(if the value is too large)",
        "( if the value is too large )",
        "(a != 1)",
        "( a != 1 )",
    ],
)
def test_parenthetical_prose_unchanged(text):
    assert normalize_math_delimiters(text) == text


# --- tables ---

def test_math_in_table_cells():
    assert normalize_math_delimiters("| Factoring | ( x^2 - 9 = 0 ) |") == "| Factoring | $x^2 - 9 = 0$ |"
    assert (
        normalize_math_delimiters(r"| vertex | ( x = -\frac{b}{2a} ) |")
        == r"| vertex | $x = -\frac{b}{2a}$ |"
    )


# --- mixed content ---

def test_multiple_block_math_lines():
    text = (
        "Given:\n"
        r"[ y = ax^{2}+bx+c \qquad (a\neq 0) ]"
        "\nGoal: vertex form\n"
        r"[ y = a\bigl(x-h\bigr)^{2}+k ]"
    )
    assert normalize_math_delimiters(text) == (
        "Given:\n"
        r"$$y = ax^{2}+bx+c \qquad (a\neq 0)$$"
        "\nGoal: vertex form\n"
        r"$$y = a\bigl(x-h\bigr)^{2}+k$$"
    )


def test_inline_and_block_math():
    text = "Take \\(\\frac{b}{a}\\) and compute:\n" r"[ y = \frac{b^2}{4a} ]"
    assert normalize_math_delimiters(text) == (
        "Take $\\frac{b}{a}$ and compute:\n" r"$$y = \frac{b^2}{4a}$$"
    )


def test_practice_problem():
    text = (
        r"Solve ( 5x^2 - 3x - 2 = 0 ) using the quadratic formula. "
        r"*(Answer: ( x = 1 ) or ( x = -\frac{2}{5} ))*"
    )
    result = normalize_math_delimiters(text)
    assert r"$5x^2 - 3x - 2 = 0$" in result
    assert r"$x = -\frac{2}{5}$" in result
    assert result == (
        r"Solve $5x^2 - 3x - 2 = 0$ using the quadratic formula. "
        r"*(Answer: $x = 1$ or $x = -\frac{2}{5}$)*"
    )


def test_backslash_content_is_not_rewrapped():
    text = r"\[ f\bigl( x^2 = 1 \bigr) \]"
    assert normalize_math_delimiters(text) == r"$$ f\bigl( x^2 = 1 \bigr) $$"


def test_code_is_left_alone():
    text = "Run `( x^2 = 1 )` and\n```\n[ y = ax^2 ]\n\\(x\\)\n```"
    assert normalize_math_delimiters(text) == text


def test_unterminated_markers_are_text():
    text = r"Open \[ x^2 and \( y and ( z^2"
    assert normalize_math_delimiters(text) == text


def test_lone_dollar_shields_rest_of_line():
    assert normalize_math_delimiters("costs $5 and ( x^2 = 1 )") == "costs $5 and ( x^2 = 1 )"
    assert normalize_math_delimiters("costs $5\n( x^2 = 1 )") == "costs $5\n$x^2 = 1$"
    assert normalize_math_delimiters(r"\($\(\)\)") == r"\($\(\)\)"


SAMPLES = [
    "",
    "Hello, world!",
    r"\[y = ax^2 + bx + c\]",
    "\\[\ny = ax^2\n\\]",
    r"[ y = ax^{2}+bx+c \qquad (a\neq 0) ]",
    "Solve ( x^2 - 9 = 0 ) and ( y^2 = 4 )",
    r"The value is \(\frac{a}{b}\) here",
    "| Factoring | ( x^2 - 9 = 0 ) |",
    "Take \\(\\frac{b}{a}\\) and compute:\n[ y = \\frac{b^2}{4a} ]",
    "[link text](https://example.com)\n[ ] unchecked item",
    "costs $5 and ( x^2 = 1 )",
    "[ ( x^2 = 1 ) and y ]",
    r"\($\(\)\)",
    r"\[$$\[\]\]",
    r"$a$\(x ( y^2 ) \(b\)",
    "$a$\\[\n[ x^2 ]\n\\]",
    "( x^2 )( y^2 ) and \\(x\\)\\(y\\)",
]


@pytest.mark.parametrize("text", SAMPLES)
def test_idempotent(text):
    once = normalize_math_delimiters(text)
    assert normalize_math_delimiters(once) == once


MARKER_SOUP = [
    "\\(", "\\)", "\\[", "\\]", "(", ")", "[", "]", " ", "$", "$$",
    "x^2", "=", "1", "\n", "\\frac{a}{b}", "if", "a",
]


def test_idempotent_on_mixed_markers():
    rng = random.Random(1729)
    for _ in range(500):
        text = "".join(rng.choice(MARKER_SOUP) for _ in range(rng.randint(1, 8)))
        once = normalize_math_delimiters(text)
        assert normalize_math_delimiters(once) == once, repr(text)


def test_explain_reports_every_candidate():
    candidates = LaTeXProcessor().explain("[ok]\n\\(x\\) then ( x^2 )")
    assert [(c.span.family, c.accepted, c.reason) for c in candidates] == [
        (DelimiterFamily.BACKSLASH_PAREN, True, CONVERTED),
        (DelimiterFamily.PLAIN_BRACKET, False, NO_SPACING),
        (DelimiterFamily.PLAIN_PAREN, True, "exponent"),
    ]


def test_custom_rules():
    text = "( x^2 if the y )"
    assert normalize_math_delimiters(text) == text
    processor = LaTeXProcessor(RecognitionRules(prose_words=frozenset()))
    assert processor.normalize(text) == "$x^2 if the y$"


def test_process_md4c_equation_tags():
    html = '<p><x-equation>x^2</x-equation> and <x-equation type="display">y = 1</x-equation></p>'
    assert LaTeXProcessor().process(html) == "<p>$x^2$ and $$y = 1$$</p>"
