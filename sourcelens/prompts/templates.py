"""Prompt templates for each generation task kind."""

from __future__ import annotations

JSON_ONLY_SYSTEM = "You are a JSON API that returns valid JSON only, with no additional text."

TOPIC_SYSTEM = (
    "You are an expert at analyzing text documents and identifying topical "
    "distributions. You output results in clean, valid JSON format only."
)

SECTIONED_ANALYSIS = """\
You are an expert humanities research assistant analyzing a primary source for a scholar.

SOURCE DATE: {date}
SOURCE AUTHOR: {author}
RESEARCH GOALS: {research_goals}
{additional_context}{perspective_line}
PRIMARY SOURCE:
{source}

Provide an analysis of this primary source in exactly six sections, in this \
order, each introduced by its label on a new line:

###CONTEXT: Place this source in its historical context, including relevant \
events, movements, or trends from the period.
###PERSPECTIVE: Analyze the author's background, potential biases, and how \
these might influence the source.
###THEMES: Identify the main themes, arguments, or narratives present in the source.
###EVIDENCE: Analyze how the author uses evidence, language, or rhetoric to \
convey their message.
###SIGNIFICANCE: Explain why this source is valuable for the stated research goals.
###REFERENCES: List the academic works you cite, one per line, in Chicago style.

Keep each section brief but content rich. Cite academic sources inline as \
📚(Author, Year) and list each of them under ###REFERENCES.\
"""

SPAN_HIGHLIGHT = """\
Identify the top {num_segments} text segments in the following content that \
best match this query: "{query}"

CONTENT:
{source}

For each segment:
1. Extract the exact text (1-2 short sentences or phrases, roughly 5-40 words, \
shorter if the query requires)
2. Find the start and end character position of the segment in the original text
3. Assign a relevance score from 0 to 1 (with 1 being most relevant)
4. Provide a one-sentence explanation of why this segment is relevant

Return a valid JSON object with this exact structure:
{{
  "segments": [
    {{
      "text": "The exact text segment from the content",
      "startIndex": 123,
      "endIndex": 234,
      "score": 0.95,
      "explanation": "Brief explanation of why this segment is relevant"
    }}
  ]
}}

IMPORTANT:
- The "text" must be copied exactly from the content, including original spacing
- startIndex and endIndex must be character positions in the original content
- Do not include overlapping segments
- Scores are relative: the best match is typically .8 or .9, weaker ones .2 to .6
- If nothing matches, use scores below .1 and say so in the explanation
- Include ONLY this JSON in your response, no other text\
"""

TOPIC_DISTRIBUTION = """\
Analyze the following document to identify the distribution of specific topics \
throughout the text.

DOCUMENT:
{source}

TOPICS TO ANALYZE:
{topic_lines}
{query_line}
For each topic:
1. Identify where in the document this topic appears
2. Report positions as character indices (0 is the start, {last_index} is the end)
3. Cover the entire document, not just the beginning
4. Extract a short representative quote (under 15 words) for each instance
5. Count how many times each topic appears

Return the results as a JSON object with this exact structure:
{{
  "topics": ["topic1", "topic2"],
  "distributions": [
    {{
      "topic": "topic1",
      "positions": [23, 4567],
      "examples": {{"23": "Quote at position 23", "4567": "Quote at position 4567"}},
      "count": 2
    }}
  ],
  "totalCounts": {{"topic1": 2}}
}}

Focus on semantic matches, not just exact word matches, and only include clear \
examples of each topic.\
"""
