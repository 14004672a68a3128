"""Fixed instruction template for the six-section markdown summary.

The template is sent as the system instruction; the paper text follows as the
user message.
"""

SUMMARY_TEMPLATE = """\
# [Title of the paper]

## Authors
- [Author 1]
- [Author 2]
...

## Tags
- [Tag 1]
- [Tag 2]
...

## Research Questions
- [Question 1]
- [Question 2]
...

## Methodology
[Detailed explanation of how the research was conducted]

## Key Findings
- [Finding 1]
- [Finding 2]
..."""

SYSTEM_PROMPT = f"""\
You are a helpful assistant that can summarize research papers.
You will be given a research paper that you will need to summarize in the following format:

{SUMMARY_TEMPLATE}
"""

