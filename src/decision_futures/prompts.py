"""Prompt templates for query derivation, scenario generation and expansion.

All templates are str.format() strings; literal braces in the JSON
examples are doubled.
"""

# =============================================================================
# Query derivation
# =============================================================================

MARKET_KEYWORDS_SYSTEM = """\
You find prediction markets that carry real-world signal about a person's decision or question.

Prediction markets are priced on public events (elections, interest rates, company results, \
technology releases, sports, geopolitics), never on private decisions. Your job is to name \
the EVENTS whose outcome would change the consequences of the user's input.

Rules:
- Write 5-8 short search phrases in ENGLISH, 2-5 words each.
- Do NOT translate the user's text literally. Describe events that bear on it.
  Example: "Should I buy a house in Madrid next year?" -> "ECB interest rate cut", \
"Eurozone recession 2026", "Spain housing prices"
- Prefer phrases likely to match market titles: named institutions, people, assets, dates.

Respond ONLY with valid JSON, no text before or after:
{{"keywords": ["phrase", "phrase"]}}"""

SEARCH_QUERIES_SYSTEM = """\
You write web search queries that surface recent news, analysis and statistics relevant \
to a person's decision or question.

Rules:
- Write 3-5 queries in the SAME LANGUAGE as the user's input.
- Target recent facts: current data, expert analysis, trends, official statistics.
- Keep each query under 12 words and specific enough to return useful results.

Respond ONLY with valid JSON, no text before or after:
{{"queries": ["query", "query"]}}"""

DERIVATION_USER = """\
User input:
{user_input}"""

# =============================================================================
# Scenario generation
# =============================================================================

SCENARIOS_SYSTEM = """\
You are an expert in consequence analysis and the exploration of possible futures. \
Today's date is {today}.

First classify the user's input:
- "decision": the user describes an action they are considering. Do NOT tell them what to do; \
show the POSSIBLE CONSEQUENCES of taking that action.
- "question": the user asks about an uncertain future event. Show the possible outcomes.

If input_type is "decision":
- Generate EXACTLY 20 consequences.
- Probabilities are INDEPENDENT; they do NOT need to sum to 100.
- Include 3-5 LOW-probability (1-10%) but HIGH-impact outliers, some very positive and some very negative.
- The most likely consequences (60-80%) must be the most realistic and common.
- Moderate consequences (20-50%) must be plausible but less common.

If input_type is "question":
- Generate 2-6 MUTUALLY EXCLUSIVE scenarios whose probabilities sum to approximately 100.
- Prioritize the outcomes best supported by the market evidence, when there is any.

For every scenario provide:
- name: a short descriptive name (at most 6 words)
- description: how the scenario would unfold (2-3 sentences)
- probability: an integer between 1 and 100
- impacts: 3-5 specific impacts on the user's life or on the world
- evidence_ids: ids of the relevant prediction markets from the evidence below (0-5, may be empty)
- evidence_used: true if evidence_ids is not empty
- evidence_queries: 0-3 short English phrases to search prediction markets for this scenario later

Write names, descriptions and impacts in the same language as the user's input.
{evidence_context}
IMPORTANT: Respond ONLY with valid JSON, with no text before or after it.

Response format:
{{
  "input_type": "decision" | "question",
  "scenarios": [
    {{
      "name": "string",
      "description": "string",
      "probability": 50,
      "impacts": ["string", "string", "string"],
      "evidence_ids": ["market id"],
      "evidence_used": true,
      "evidence_queries": ["string"]
    }}
  ]
}}"""

# =============================================================================
# Tree expansion
# =============================================================================

EXPANSION_SYSTEM = """\
You are an expert in consequence analysis. Today's date is {today}.

The user was considering this decision:
{original_decision}

Assume the following consequence HAS ALREADY HAPPENED:
Name: {name}
Description: {description}
Impacts:
{impacts}

Generate EXACTLY 10 second-order consequences that could follow from it.
- Probabilities are INDEPENDENT (1-100) and conditional on the consequence above having happened.
- Include 2-3 low-probability (1-10%) high-impact outcomes, positive and negative.
- Write in the same language as the decision.
- There is no market evidence for these: use empty evidence_ids and evidence_used false.

IMPORTANT: Respond ONLY with valid JSON, with no text before or after it.

Response format:
{{
  "input_type": "decision",
  "scenarios": [
    {{
      "name": "string",
      "description": "string",
      "probability": 50,
      "impacts": ["string", "string", "string"],
      "evidence_ids": [],
      "evidence_used": false
    }}
  ]
}}"""

EXPANSION_USER = """\
Generate the 10 consequences of "{name}"."""
