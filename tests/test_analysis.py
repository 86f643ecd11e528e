from amplifier.analysis import (
    build_analysis_prompt,
    extract_corrected_code,
    extract_score,
    parse_analysis,
    strip_code_block,
    strip_think_tags,
)

RESPONSE = """<think>checking the loop</think>
## Analysis Summary
The loop is off by one.

```python
for i in range(10):
    print(i)
```

Final Score: <SCORE:72>
"""


def test_extract_score():
    assert extract_score("Final Score: <SCORE:85>") == 85


def test_extract_score_uses_first_token():
    assert extract_score("<SCORE:40> then <SCORE:90>") == 40


def test_extract_score_clamped():
    assert extract_score("<SCORE:150>") == 100
    assert extract_score("<SCORE:007>") == 7


def test_extract_score_missing_defaults_to_zero():
    assert extract_score("Score: 85/100") == 0
    assert extract_score("<SCORE:-5>") == 0


def test_strip_think_tags_keeps_inner_text():
    assert strip_think_tags("<think>plan</think>answer") == "plananswer"


def test_extract_corrected_code_with_language_tag():
    text = "Fix:\n```python\nx = 1\n```\nMore text"
    assert extract_corrected_code(text) == "x = 1"


def test_extract_corrected_code_without_language_tag():
    assert extract_corrected_code("```\n  y = 2  \n```") == "y = 2"


def test_extract_corrected_code_first_block_only():
    text = "```js\nfirst()\n```\n```js\nsecond()\n```"
    assert extract_corrected_code(text) == "first()"


def test_extract_corrected_code_none():
    assert extract_corrected_code("No code here") is None
    assert extract_corrected_code("```\n\n```") is None


def test_strip_code_block_removes_first_block():
    text = "before\n```py\na()\n```\nmiddle\n```py\nb()\n```"
    stripped = strip_code_block(text)
    assert "a()" not in stripped
    assert "b()" in stripped
    assert stripped.startswith("before")


def test_parse_analysis():
    outcome = parse_analysis(RESPONSE)
    assert outcome.score == 72
    assert outcome.corrected_code == "for i in range(10):\n    print(i)"
    assert outcome.has_corrections
    assert "<think>" not in outcome.feedback
    assert "checking the loop" in outcome.feedback
    assert "```" not in outcome.feedback
    assert outcome.feedback.endswith("<SCORE:72>")


def test_parse_analysis_without_code():
    outcome = parse_analysis("  Looks fine. <SCORE:95>  ")
    assert outcome.feedback == "Looks fine. <SCORE:95>"
    assert outcome.corrected_code is None
    assert not outcome.has_corrections


def test_build_analysis_prompt():
    prompt = build_analysis_prompt("py", "print(1)")
    assert "The code is written in py." in prompt
    assert "<SCORE:XX>" in prompt
    assert prompt.rstrip().endswith("print(1)")
    assert "Additionally" not in prompt


def test_build_analysis_prompt_with_user_prompt():
    prompt = build_analysis_prompt("go", "package main", "focus on error handling")
    assert "Additionally, consider the following user prompt: focus on error handling" in prompt
