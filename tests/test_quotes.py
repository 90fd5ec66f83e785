from helmify.quotes import fix_unterminated_quotes

SPLIT = (
    "data:\n"
    '  KEY: {{ required "a.key\n'
    '    is required" .Values.a.key | b64enc\n'
    "    | quote }}\n"
    "type: opaque"
)

JOINED = (
    "data:\n"
    '  KEY: {{ required "a.key is required" .Values.a.key | b64enc\n'
    "    | quote }}\n"
    "type: opaque"
)


def test_remove_line_break_for_unterminated_quotes():
    assert fix_unterminated_quotes(SPLIT) == JOINED


def test_balanced_lines_keep_their_breaks():
    text = 'a: {{ required "x is required" .Values.x\n    | quote }}'
    assert fix_unterminated_quotes(text) == text


def test_quote_closed_on_next_line():
    assert fix_unterminated_quotes('x: "y\n   z"') == 'x: "y z"'


def test_balanced_text_unchanged():
    text = 'a: "b"\nc: d'
    assert fix_unterminated_quotes(text) == text


def test_empty_string():
    assert fix_unterminated_quotes("") == ""