"""Starter project templates for ``ntando init``."""

import json
from pathlib import Path

PROJECT_TYPES = {
    "static": "HTML/CSS/JS Static Site",
    "react": "React App",
    "vue": "Vue.js App",
    "node": "Node.js Backend",
    "python": "Python/Flask",
}

_NAME = "__NAME__"

_STATIC = {
    "index.html": """<!DOCTYPE html>
<html>
<head>
    <title>__NAME__</title>
    <link rel="stylesheet" href="style.css">
</head>
<body>
    <div class="container">
        <h1>Welcome to __NAME__</h1>
        <p>This is your new static site deployed with Ntando Computer.</p>
    </div>
    <script src="script.js"></script>
</body>
</html>
""",
    "style.css": """body {
    font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif;
    line-height: 1.6;
    color: #333;
    margin: 0;
    padding: 40px 20px;
}

.container {
    max-width: 800px;
    margin: 0 auto;
    background: #f8f9fa;
    padding: 40px;
    border-radius: 8px;
}

h1 {
    color: #2c3e50;
    text-align: center;
}
""",
    "script.js": """console.log('Welcome to __NAME__!');

document.addEventListener('DOMContentLoaded', function() {
    console.log('Page loaded successfully');
});
""",
}

_REACT = {
    "package.json": json.dumps(
        {
            "name": _NAME,
            "version": "1.0.0",
            "private": True,
            "scripts": {
                "start": "react-scripts start",
                "build": "react-scripts build",
                "test": "react-scripts test",
            },
            "dependencies": {
                "react": "^18.2.0",
                "react-dom": "^18.2.0",
                "react-scripts": "5.0.1",
            },
        },
        indent=2,
    )
    + "\n",
    "public/index.html": """<!DOCTYPE html>
<html>
<head>
    <title>__NAME__</title>
</head>
<body>
    <div id="root"></div>
</body>
</html>
""",
    "src/index.js": """import React from 'react';
import ReactDOM from 'react-dom/client';
import App from './App';

const root = ReactDOM.createRoot(document.getElementById('root'));
root.render(
    <React.StrictMode>
        <App />
    </React.StrictMode>
);
""",
    "src/App.js": """import React from 'react';
import './App.css';

function App() {
    return (
        <div className="App">
            <h1>Welcome to __NAME__</h1>
            <p>This is your new React app deployed with Ntando Computer.</p>
        </div>
    );
}

export default App;
""",
    "src/App.css": """.App {
    text-align: center;
    padding: 40px;
}
""",
}

_VUE = {
    "package.json": json.dumps(
        {
            "name": _NAME,
            "version": "1.0.0",
            "private": True,
            "scripts": {"dev": "vite", "build": "vite build", "preview": "vite preview"},
            "dependencies": {"vue": "^3.4.0"},
            "devDependencies": {"@vitejs/plugin-vue": "^5.0.0", "vite": "^5.0.0"},
        },
        indent=2,
    )
    + "\n",
    "index.html": """<!DOCTYPE html>
<html>
<head>
    <title>__NAME__</title>
</head>
<body>
    <div id="app"></div>
    <script type="module" src="/src/main.js"></script>
</body>
</html>
""",
    "vite.config.js": """import { defineConfig } from 'vite';
import vue from '@vitejs/plugin-vue';

export default defineConfig({ plugins: [vue()] });
""",
    "src/main.js": """import { createApp } from 'vue';
import App from './App.vue';

createApp(App).mount('#app');
""",
    "src/App.vue": """<template>
  <div class="app">
    <h1>Welcome to __NAME__</h1>
    <p>This is your new Vue app deployed with Ntando Computer.</p>
  </div>
</template>
""",
}

_NODE = {
    "package.json": json.dumps(
        {
            "name": _NAME,
            "version": "1.0.0",
            "main": "server.js",
            "scripts": {"start": "node server.js", "dev": "node --watch server.js"},
            "dependencies": {"express": "^4.18.2"},
        },
        indent=2,
    )
    + "\n",
    "server.js": """const express = require('express');

const app = express();
const PORT = process.env.PORT || 3000;

app.get('/', (req, res) => {
    res.json({ message: 'Welcome to __NAME__' });
});

app.listen(PORT, () => {
    console.log(`__NAME__ listening on port ${PORT}`);
});
""",
}

_PYTHON = {
    "requirements.txt": "flask>=3.0\n",
    "app.py": """from flask import Flask

app = Flask(__name__)


@app.route("/")
def index():
    return {"message": "Welcome to __NAME__"}


if __name__ == "__main__":
    app.run(debug=True)
""",
}

TEMPLATES: dict[str, dict[str, str]] = {
    "static": _STATIC,
    "react": _REACT,
    "vue": _VUE,
    "node": _NODE,
    "python": _PYTHON,
}

NEXT_STEPS: dict[str, list[str]] = {
    "static": ["ntando deploy"],
    "react": ["npm install", "npm start", "ntando deploy --build 'npm run build' --output build"],
    "vue": ["npm install", "npm run dev", "ntando deploy --build 'npm run build' --output dist"],
    "node": ["npm install", "npm start", "ntando deploy"],
    "python": ["pip install -r requirements.txt", "python app.py", "ntando deploy"],
}


def scaffold(project_name: str, project_type: str, parent: Path) -> Path:
    """Create ``parent/project_name`` filled with the chosen template.

    Raises FileExistsError when the directory already exists.
    """
    template = TEMPLATES.get(project_type, _STATIC)
    project_path = parent / project_name
    project_path.mkdir(parents=False)

    for relative, content in template.items():
        path = project_path / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content.replace(_NAME, project_name), encoding="utf-8")

    return project_path
