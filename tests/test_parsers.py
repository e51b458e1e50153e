"""Tests for the lesson document parser."""
from __future__ import annotations

import pytest

from lesson_quiz.models import (
    ANY,
    ChooseBest,
    CodeSample,
    FreeTextNumber,
    Heading,
    Image,
    Option,
    Paragraph,
)
from lesson_quiz.parsers.lesson_parser import (
    ParseError,
    ParseErrorKind,
    parse_lesson,
    parse_lesson_file,
)


class TestLessonParser:
    def test_block_order(self, lesson_md_content):
        doc = parse_lesson(lesson_md_content)
        kinds = [type(b) for b in doc.blocks]
        assert kinds == [
            Heading,
            Paragraph,
            CodeSample,
            Image,
            Paragraph,
            ChooseBest,
            FreeTextNumber,
            FreeTextNumber,
        ]

    def test_heading(self, lesson_md_content):
        doc = parse_lesson(lesson_md_content)
        assert doc.blocks[0] == Heading(level=1, text="Naming Conventions")
        assert doc.blocks[0].line_start == 1

    def test_code_sample_is_verbatim(self, lesson_md_content):
        doc = parse_lesson(lesson_md_content)
        code = doc.blocks[2]
        assert code.language == "ruby"
        assert code.code == "def total_price\n  # - not an option\nend"
        assert (code.line_start, code.line_end) == (5, 9)

    def test_markup_inside_fence_not_interpreted(self):
        text = """\
```
- option
{: .bogus }
# not a heading
```
"""
        doc = parse_lesson(text)
        assert len(doc.blocks) == 1
        assert doc.blocks[0].code == "- option\n{: .bogus }\n# not a heading"

    def test_tilde_fence_and_longer_close(self):
        text = "~~~python\nprint('```')\n~~~~\n"
        doc = parse_lesson(text)
        assert doc.blocks == (CodeSample(language="python", code="print('```')"),)

    def test_form_feed_in_code_is_kept(self):
        text = "```\na\x0cb\nc\u2028d\n```\n"
        doc = parse_lesson(text)
        assert doc.blocks[0].code == "a\x0cb\nc\u2028d"
        assert doc.blocks[0].line_end == 4

    def test_line_numbers_after_unicode_separator(self):
        text = "Para\x85graph\n\n{: .nope }\n"
        with pytest.raises(ParseError) as exc:
            parse_lesson(text)
        assert exc.value.line == 3

    def test_backticks_in_info_string_is_not_a_fence(self):
        doc = parse_lesson("```x``` is inline code\n\nAfter.\n")
        assert doc.blocks == (Paragraph("```x``` is inline code"), Paragraph("After."))

    def test_tilde_fence_info_may_contain_backticks(self):
        doc = parse_lesson("~~~ `odd`\ncode\n~~~\n")
        assert doc.blocks == (CodeSample(language="`odd`", code="code"),)

    def test_image(self, lesson_md_content):
        doc = parse_lesson(lesson_md_content)
        assert doc.blocks[3] == Image(alt="Casing chart", src="images/casing.png", title="Casing chart")

    def test_image_without_title(self):
        doc = parse_lesson("![alt text](pic.png)\n")
        assert doc.blocks[0] == Image(alt="alt text", src="pic.png")

    def test_choose_best(self, lesson_md_content):
        doc = parse_lesson(lesson_md_content)
        q = doc.find("ruby_file_names")
        assert isinstance(q, ChooseBest)
        assert q.title == "File names"
        assert q.points == 1
        assert q.answer == 1
        assert len(q.options) == 3
        assert q.options[0] == Option("`my_class.rb`", "Correct! File names use snake_case.")
        assert q.options[2].feedback == "Sorry, camelCase is not used in Ruby."
        assert (q.line_start, q.line_end) == (15, 21)

    def test_question_prompt_paragraph_stays_separate(self, lesson_md_content):
        doc = parse_lesson(lesson_md_content)
        assert doc.blocks[4] == Paragraph("Which is the correct name for a Ruby file?")

    def test_free_text_prompt(self, lesson_md_content):
        doc = parse_lesson(lesson_md_content)
        q = doc.find("indent_width")
        assert isinstance(q, FreeTextNumber)
        assert q.prompt == "How many spaces make up one level of indentation?"
        assert q.answer == "2"
        assert q.points == 2
        assert (q.line_start, q.line_end) == (23, 24)

    def test_any_sentinel(self, lesson_md_content):
        doc = parse_lesson(lesson_md_content)
        q = doc.find("favorite_width")
        assert q.answer is ANY
        assert q.is_any
        assert q.prompt == ""

    def test_any_is_case_insensitive(self):
        doc = parse_lesson('{: .free_text_number #n title="N" points="1" answer="Any" }\n')
        assert doc.questions[0].answer is ANY

    def test_two_option_scenario(self):
        text = """\
- first
- second
{: .choose_best #x title="T" points="1" answer="2" }
"""
        doc = parse_lesson(text)
        assert len(doc.questions) == 1
        q = doc.questions[0]
        assert q.id == "x"
        assert q.points == 1
        assert len(q.options) == 2
        assert q.answer == 2

    def test_multiline_feedback(self):
        text = """\
- yes
  Correct!
  - Indentation is two spaces.
- no
{: .choose_best #q title="Q" points="1" answer="1" }
"""
        q = parse_lesson(text).questions[0]
        assert q.options[0].feedback == "Correct!\n- Indentation is two spaces."
        assert q.options[1].feedback == ""

    def test_numbered_options(self):
        text = '1. one\n2) two\n{: .choose_best #n title="N" points="1" answer="2" }\n'
        q = parse_lesson(text).questions[0]
        assert [o.text for o in q.options] == ["one", "two"]

    def test_paragraph_right_before_options_is_not_an_option(self):
        text = """\
Pick one:
- a
- b
{: .choose_best #p title="P" points="1" answer="1" }
"""
        doc = parse_lesson(text)
        assert doc.blocks[0] == Paragraph("Pick one:")
        assert len(doc.blocks[1].options) == 2

    def test_plain_list_becomes_paragraph(self):
        text = "- just\n- a list\n\nSome prose.\n"
        doc = parse_lesson(text)
        assert doc.blocks == (Paragraph("- just\n- a list"), Paragraph("Some prose."))
        assert doc.questions == []

    def test_prose_after_list_closes_it(self):
        text = "- a\n- b\nnot indented\n"
        doc = parse_lesson(text)
        assert doc.blocks == (Paragraph("- a\n- b"), Paragraph("not indented"))

    def test_multiline_paragraph(self):
        doc = parse_lesson("line one\nline two\n\nline three\n")
        assert doc.blocks == (Paragraph("line one\nline two"), Paragraph("line three"))
        assert (doc.blocks[0].line_start, doc.blocks[0].line_end) == (1, 2)

    def test_extra_attributes_ignored(self):
        text = '- a\n{: .choose_best #e title="E" points="1" answer="1" shuffle="true" }\n'
        q = parse_lesson(text).questions[0]
        assert q.id == "e"

    def test_windows_line_endings(self, lesson_md_content):
        doc = parse_lesson(lesson_md_content.replace("\n", "\r\n"))
        assert doc == parse_lesson(lesson_md_content)

    def test_out_of_range_answer_is_not_a_parse_error(self):
        text = '- a\n- b\n- c\n{: .choose_best #y title="Y" points="1" answer="5" }\n'
        assert parse_lesson(text).questions[0].answer == 5

    def test_non_positive_points_is_not_a_parse_error(self):
        text = '{: .free_text_number #z title="Z" points="-1" answer="3" }\n'
        assert parse_lesson(text).questions[0].points == -1

    def test_empty_document(self):
        doc = parse_lesson("")
        assert doc.blocks == ()
        assert doc.questions == []

    def test_parse_file(self, lesson_file):
        doc = parse_lesson_file(lesson_file)
        assert doc.source == "naming.md"
        assert len(doc.questions) == 3
        assert doc.total_points == 4

    def test_deterministic(self, lesson_md_content):
        assert parse_lesson(lesson_md_content) == parse_lesson(lesson_md_content)


class TestParseErrors:
    def test_unterminated_fence(self):
        text = "Intro\n\n```ruby\nputs 1\n"
        with pytest.raises(ParseError) as exc:
            parse_lesson(text)
        assert exc.value.kind is ParseErrorKind.UNTERMINATED_CODE_FENCE
        assert exc.value.line == 3

    def test_fence_closed_by_other_char_is_unterminated(self):
        with pytest.raises(ParseError) as exc:
            parse_lesson("```\ncode\n~~~\n")
        assert exc.value.kind is ParseErrorKind.UNTERMINATED_CODE_FENCE

    def test_unknown_marker_class(self):
        with pytest.raises(ParseError) as exc:
            parse_lesson("Para\n\n{: .note }\n")
        assert exc.value.kind is ParseErrorKind.MALFORMED_BLOCK_MARKER
        assert exc.value.line == 3
        assert "choose_best" in exc.value.expected

    def test_marker_without_id(self):
        with pytest.raises(ParseError) as exc:
            parse_lesson('- a\n{: .choose_best title="T" points="1" answer="1" }\n')
        assert exc.value.kind is ParseErrorKind.MALFORMED_BLOCK_MARKER

    def test_unclosed_marker(self):
        with pytest.raises(ParseError) as exc:
            parse_lesson('- a\n{: .choose_best #q title="T" points="1" answer="1"\n')
        assert exc.value.kind is ParseErrorKind.MALFORMED_BLOCK_MARKER

    def test_missing_attribute(self):
        with pytest.raises(ParseError) as exc:
            parse_lesson('- a\n{: .choose_best #q title="T" answer="1" }\n')
        assert exc.value.kind is ParseErrorKind.MISSING_METADATA
        assert exc.value.line == 2
        assert "points" in str(exc.value)

    def test_choose_best_without_options(self):
        with pytest.raises(ParseError) as exc:
            parse_lesson('Question?\n{: .choose_best #q title="T" points="1" answer="1" }\n')
        assert exc.value.kind is ParseErrorKind.MISSING_METADATA

    def test_blank_line_detaches_options(self):
        text = '- a\n- b\n\n{: .choose_best #q title="T" points="1" answer="1" }\n'
        with pytest.raises(ParseError) as exc:
            parse_lesson(text)
        assert exc.value.kind is ParseErrorKind.MISSING_METADATA
        assert exc.value.line == 4

    def test_non_integer_points(self):
        with pytest.raises(ParseError) as exc:
            parse_lesson('- a\n{: .choose_best #q title="T" points="one" answer="1" }\n')
        assert exc.value.kind is ParseErrorKind.MALFORMED_BLOCK_MARKER

    def test_non_integer_choose_best_answer(self):
        with pytest.raises(ParseError) as exc:
            parse_lesson('- a\n{: .choose_best #q title="T" points="1" answer="a" }\n')
        assert exc.value.kind is ParseErrorKind.MALFORMED_BLOCK_MARKER

    def test_message_includes_line(self):
        with pytest.raises(ParseError) as exc:
            parse_lesson("\n\n{: nope }\n")
        assert str(exc.value).startswith("line 3:")
