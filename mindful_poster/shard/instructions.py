from __future__ import annotations

# Tool descriptions used by FastMCP when registering tools. Keep short and clear.
TOOL_DESCRIPTIONS: dict[str, str] = {
    "generate_poster": "Generate one mindful poster from a short prompt, decorated with the selected content series and model style.",
    "generate_poster_batch": "Generate a batch of up to 4 poster variations from one prompt in a single request.",
    "regenerate_poster": "Generate a new poster from the prompt of a stored poster, using the current selections.",
    "list_posters": "List stored posters (newest first) without image bytes.",
    "delete_poster": "Delete a stored poster by id.",
    "export_poster": "Write a stored poster's image to a directory, or return it as image content for sharing.",
    "get_model_catalog": "Return the supported models with their capabilities, plus aspect ratios, content series and styles.",
    "get_request_logs": "Return recent generation request logs (developer mode) and today's accumulated cost.",
    "get_prompt_suggestions": "Return prompt ideas, series starter prompts and the content series suggested for today.",
    "set_api_key": "Store the Runware API key used for generation requests.",
    "set_preferences": "Toggle developer mode and advanced controls.",
}


# High-level, concise server instructions for agents.
SERVER_INSTRUCTIONS: str = (
    "Mindful Poster MCP Server - Agent Instructions.\n"
    "Role: This server turns short prompts into calm, Instagram-ready posters for a weekly wellness content "
    "schedule. It decorates every prompt with a content-series theme and model-specific quality hints, sends it "
    "to the Runware image API and keeps a local gallery of the results.\n\n"
    "Workflow (short):\n"
    "1) Call get_model_catalog to see the models, aspect ratios, content series and styles.\n"
    "2) Optionally call get_prompt_suggestions for ideas and today's series.\n"
    "3) Call generate_poster (one image) or generate_poster_batch (up to 4 variations).\n"
    "4) Use list_posters, regenerate_poster, export_poster and delete_poster to manage the gallery.\n\n"
    "Hard rules (must follow):\n"
    "- Prompts must be at least 3 characters after trimming.\n"
    "- An API key must be configured first (set_api_key or the RUNWARE_API_KEY environment variable).\n"
    "- style, negative_prompt and seed only apply when advanced is true.\n\n"
    "Outputs and failures (summary):\n"
    "- Successful calls return MCP ImageContent blocks and a structured PosterToolStructured payload with "
    "status, image_count, images, meta and error.\n"
    "- API failures return PosterToolStructured with ok=false and a stable error code.\n"
    "- Invalid prompts, missing credentials and unknown ids surface as MCP ToolErrors."
)


__all__ = ["TOOL_DESCRIPTIONS", "SERVER_INSTRUCTIONS"]
