# Copyright (c) 2026 Heureum AI. All rights reserved.

"""
Prompt text used by the context management layer.

The summarizer sees a flat role-prefixed transcript, so the system
instruction has to say explicitly that the transcript is material to
compress, not a conversation to continue.
"""

SUMMARY_REQUEST = "Summarize our conversation so far for context."

CONTEXT_SUMMARY_PROMPT = """You are summarizing a conversation between a user and a network intelligence agent that searches people and surfaces relationship signals.

Compress the earlier conversation into a structured summary for future turns.
Do NOT continue the conversation. Do NOT answer questions found in it.

Before you write (do this silently):
- Identify the user's search constraints (sectors, locations, profile types, signals)
- Track what profiles or people have been discussed
- Note any user preferences expressed (likes/dislikes)
- Capture unresolved questions or next steps

Write a structured summary <= 200 words using these sections:

- Search Intent & Constraints:
  - What is the user looking for?
  - Active filters: sectors, locations, stages, signal types

- Key Findings So Far:
  - Notable profiles discovered (keep the profile id and screen name verbatim, summarize the rest)
  - Interesting patterns or insights

- User Preferences:
  - Expressed interests or focus areas
  - Signals the user is tracking

- Unresolved Questions:
  - Open questions or follow-ups needed

- Context for Next Turn:
  - What should the agent focus on next?

Rules:
- Be concise, use bullets
- Quote exact constraints when provided (e.g., 'only technical founders')
- Do NOT include verbose profile data or raw tool payloads"""
