"""
Prompt assembly for the planning and synthesis model calls.
"""

from datetime import date, datetime
from typing import Optional

from orin.agent.results import SynthesisInput


def today_reference(now: Optional[date] = None) -> str:
    """Human date used to ground temporal queries, e.g. '19 October 2026'."""
    d = now or datetime.now().date()
    return f"{d.day} {d:%B %Y}"


def build_planner_prompt(query: str, today: str) -> str:
    """Planning request. `today` is embedded whether or not the query is temporal."""
    return f"""
You are an expert agentic planner tasked with breaking down user queries into actionable steps.

## USER QUERY
{query}

## TODAY
{today}

## AVAILABLE TOOLS
1. **webSearch**: Search the web for current information
   - Use for: finding latest news, current events, research, general information
   - Parameters: query (string)

2. **fetchUrl**: Fetch a web page and convert its content to Markdown
   - Use for: extracting content from specific web pages or articles
   - Parameters: url (string, must start with http:// or https://)

3. **generateHaiku**: Generate a traditional haiku (5-7-5 syllable pattern)
   - Use for: creative writing, poetry, artistic expression
   - Parameters: prompt (string)

## PLANNING RULES
1. **Temporal Queries**: If the query mentions "latest", "recent", "today", "current", etc., include "{today}" in your search terms
2. **URL Handling**: If the query contains URLs, plan to fetch them first, then potentially search for related information
3. **Multi-part Queries**: When the query asks about several distinct things, give the same tool one parameter per thing instead of merging them into one
4. **Search Strategy**: For web searches, create 2-4 targeted queries that capture different aspects of the topic
5. **Information Synthesis**: Plan how you'll combine results from multiple tools to provide a comprehensive answer
6. **No Tools Needed**: If the query can be answered without any tool, return an empty "tools" list and an empty "parameters" object

## EXAMPLES
- Query: "What's the latest iPhone news?"
  -> tools: ["webSearch"]
  -> parameters: {{ "webSearch": ["iPhone {today} latest news", "iPhone announcement"] }}

- Query: "Summarise this article https://example.com/article and find related news"
  -> tools: ["fetchUrl", "webSearch"]
  -> parameters: {{ "fetchUrl": ["https://example.com/article"], "webSearch": ["related news topic"] }}

- Query: "Create a haiku about recent AI developments"
  -> tools: ["webSearch", "generateHaiku"]
  -> parameters: {{ "webSearch": ["AI developments {today}"], "generateHaiku": ["AI developments and innovation"] }}

## RESPONSE FORMAT
Your response must be a JSON object with this exact structure:
{{
  "reasoning": "explanation of your approach",
  "tools": ["toolName1", "toolName2"],
  "parameters": {{
    "webSearch": ["query1", "query2"],
    "fetchUrl": ["url1", "url2"],
    "generateHaiku": ["prompt1", "prompt2"]
  }},
  "expectedWorkflow": "how you'll use the results"
}}

Only include parameter arrays for tools you're actually using. Each parameter value must be an array of strings, even when it has a single element.

Analyse the user query and create a comprehensive plan.""".strip()


def build_synthesis_prompt(synthesis_input: SynthesisInput) -> str:
    """Synthesis request: planning context, grounding rules, query, and the ordered results."""
    if synthesis_input.results:
        gathered = synthesis_input.serialized_results
        availability = (
            f"{len(synthesis_input.results)} tool invocation(s) were run; "
            f"{synthesis_input.error_count} failed."
        )
    else:
        gathered = "(none)"
        availability = (
            "No tools were run for this query. Answer from general knowledge only, say so, "
            "and do not present anything as a search result, fetched page, or generated tool output."
        )
    return f"""
You are tasked with providing a comprehensive response to the user's query based on the gathered information.

## PLANNING CONTEXT
**Reasoning**: {synthesis_input.reasoning}
**Expected Workflow**: {synthesis_input.expected_workflow}

## TOOL AVAILABILITY
{availability}

## INSTRUCTIONS
1. Use ONLY the gathered information below as factual grounding; do not invent results
2. Provide a comprehensive, well-structured response to the user's query
3. If web search results were gathered, synthesise the key findings
4. If content was fetched from URLs, summarise the relevant points
5. If haikus were generated, present them beautifully
6. If an entry has "status": "error", tell the user that this step failed and what could not be covered; do not hide it
7. If an entry has "degraded": true, its output is a canned fallback, not a genuine result; say so if you use it
8. Cite sources (title and URL) when referencing web search results or fetched content

## ORIGINAL USER QUERY
{synthesis_input.query}

## GATHERED INFORMATION
{gathered}

Provide your final response:""".strip()
