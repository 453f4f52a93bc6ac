# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_cookbook

"""Deliberately broken application used to exercise the fixer and error reporting."""

from coreason_cookbook.models import File

BUGGY_APP_TSX = """import React from 'react';

function App() {
  const message = "Hello World;  // Missing closing quote
  const title = 'Welcome to my app';

  return (
    <div className="min-h-screen bg-gray-100 flex items-center justify-center">
      <div className="bg-white p-8 rounded-lg shadow-md">
        <h1 className="text-2xl font-bold mb-4">{title}</h1>
        <p className="text-gray-600">{message}</p>
      </div>
    </div>
  );
}

export default App;
"""

BUGGY_FILES: tuple[File, ...] = (File(path="src/App.tsx", content=BUGGY_APP_TSX),)


def buggy_files() -> list[File]:
    """Return fresh copies of the broken application files."""
    return [file.model_copy() for file in BUGGY_FILES]
