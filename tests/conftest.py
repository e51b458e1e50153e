"""Shared test fixtures."""
from __future__ import annotations

import pytest

from lesson_quiz.models import ANY, ChooseBest, Document, FreeTextNumber, Option


@pytest.fixture
def lesson_md_content():
    """A small lesson with every block type and all question kinds."""
    return """\
# Naming Conventions

Ruby uses `snake_case` for methods and variables.

```ruby
def total_price
  # - not an option
end
```

![Casing chart](images/casing.png "Casing chart")

Which is the correct name for a Ruby file?

- `my_class.rb`
  Correct! File names use snake_case.
- `MyClass.rb`
  Sorry, CamelCase is for class names.
- `myClass.rb`
  Sorry, camelCase is not used in Ruby.
{: .choose_best #ruby_file_names title="File names" points="1" answer="1" }

How many spaces make up one level of indentation?
{: .free_text_number #indent_width title="Indentation" points="2" answer="2" }

{: .free_text_number #favorite_width title="Your preference" points="1" answer="any" }
"""


@pytest.fixture
def duplicate_id_content():
    return """\
- `snake_case`
- `camelCase`
{: .choose_best #ruby_file_names title="Methods" points="1" answer="1" }

- `snake_case.rb`
- `CamelCase.rb`
{: .choose_best #ruby_file_names title="Files" points="1" answer="1" }
"""


@pytest.fixture
def lesson_file(tmp_path, lesson_md_content):
    f = tmp_path / "naming.md"
    f.write_text(lesson_md_content)
    return f


@pytest.fixture
def sample_document():
    """A hand-built Document with one question of each kind."""
    return Document(
        blocks=(
            ChooseBest(
                id="casing",
                title="Casing",
                points=2,
                options=(
                    Option("snake_case", "Correct!"),
                    Option("camelCase", "Sorry."),
                    Option("PascalCase", "Sorry."),
                ),
                answer=1,
            ),
            FreeTextNumber(id="width", title="Width", points=1, answer="2"),
            FreeTextNumber(id="anything", title="Anything", points=1, answer=ANY),
        ),
        source="sample.md",
    )
