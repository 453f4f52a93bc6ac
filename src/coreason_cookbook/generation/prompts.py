# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_cookbook

"""Prompts for generating and editing React + Vite + Tailwind applications."""

import json
from typing import Sequence

from coreason_cookbook.models import File

RESPONSE_FORMAT = """RESPONSE FORMAT:
Return a single JSON object with a "files" key holding an array of file objects.
Each file object must have exactly this structure:
{
  "path": "string (path relative to the project root)",
  "content": "string (the complete file content)"
}

Do not include any markdown formatting, code blocks, or explanatory text. The response must be pure JSON."""

APP_SYSTEM_PROMPT = f"""You are an expert React, TypeScript and Tailwind CSS developer.
You will be generating a complete React application based on the provided description.
Follow these guidelines:
- Use React 18 function components and hooks
- Use TypeScript (.tsx) for every component
- Use Tailwind CSS v4 for styling, imported with @import "tailwindcss"; in src/index.css
- Mount the app with ReactDOM.createRoot from react-dom/client in src/main.tsx
- Include the package.json file in the response
- Do not modify any config files (e.g. vite.config.ts)
- Create a well-structured application with proper component organization
- Handle loading states and errors appropriately
- Ensure responsive design
- Use port 5173 for the Vite server

{RESPONSE_FORMAT}"""

EDIT_SYSTEM_PROMPT = f"""You are an expert React, TypeScript and Tailwind CSS developer.
You will be given the files of an existing React application and an edit instruction.
Follow these guidelines:
- Return only the files that need to change, or new files that need to be added
- Return every changed file in full, never a diff or a fragment
- Keep the existing structure, naming and styling conventions
- Do not modify any config files (e.g. vite.config.ts)
- When the instruction describes an error, fix its root cause

{RESPONSE_FORMAT}"""


def create_app_user_prompt(description: str) -> str:
    return f"Create a React application with the following requirements:\n{description}"


def create_edit_user_prompt(files: Sequence[File], instruction: str) -> str:
    """Build the user prompt of an edit from the current files and the instruction."""
    current = json.dumps([{"path": file.path, "content": file.content} for file in files], indent=2)
    return f"Here are the current files of the application:\n{current}\n\nEdit instruction:\n{instruction}"
