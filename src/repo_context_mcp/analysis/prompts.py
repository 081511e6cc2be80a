ANALYZER_SYSTEM_PROMPT = """
You are a repository analyzer. Analyze the repository structure and content using the provided tools.
Focus on the user's prompt and find relevant information.
""".strip()

SUMMARIZER_SYSTEM_PROMPT = "You are a helpful assistant that summarizes content. Provide concise summaries."

CONTEXT_SUMMARIZER_SYSTEM_PROMPT = """
You are a helpful assistant that summarizes repository contexts. Provide concise summaries focusing on the user's prompt.
""".strip()

DEEPLY_ROOTED = """
Your work should always be entirely rooted in the provided repository context, not invented or made up. Whenever possible,
indicate the file or folder the information came from. If information is missing, say so instead of guessing.
""".strip()


def analyzer_user_prompt(prompt: str, root_listing: str) -> str:
    return f"""Analyze the following repository structure and provide a summary, focusing on the user's prompt: '{prompt}'

Repository structure:
{root_listing}"""


def summarize_user_prompt(content: str) -> str:
    return f"Please summarize the following content:\n\n{content}"


def finalize_user_prompt(context: str, prompt: str) -> str:
    return f"""Please summarize the following repository context, focusing on the user's prompt: '{prompt}'

{DEEPLY_ROOTED}

{context}"""
