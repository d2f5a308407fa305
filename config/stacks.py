"""Stack definitions: allowed project options, defaults and bootstrap commands."""

PROJECT_KINDS = ("frontend", "backend", "fullstack")
LANGUAGES = ("javascript", "typescript")

FRONTEND_FRAMEWORKS = ("react", "nextjs", "vue", "angular", "svelte", "vanilla")
STYLINGS = ("css", "scss", "tailwind", "bootstrap")
BACKEND_FRAMEWORKS = ("express", "nest", "fastify", "koa", "hapi")
DATABASES = ("mongodb", "postgres", "mysql", "sqlite", "supabase", "none")

FEATURES = ("auth", "database", "api", "upload", "darkmode", "responsive")

# Used whenever classification output cannot be trusted.
DEFAULT_PROJECT_CONFIG = {
    "type": "frontend",
    "language": "typescript",
    "frontend": {
        "framework": "react",
        "styling": "tailwind",
        "features": [],
    },
    "name": "default-project",
    "description": "Web application generated from user prompt",
}

# Conventional entry points, checked in order when picking the file to open.
MAIN_FILE_CANDIDATES = [
    "src/App.tsx",
    "src/App.jsx",
    "src/App.js",
    "src/main.tsx",
    "src/main.jsx",
    "src/index.tsx",
    "src/index.jsx",
    "src/index.js",
    "src/index.ts",
    "index.html",
    "public/index.html",
    "app.js",
    "server.js",
    "index.js",
    "main.js",
]

# Frontend bootstrap: framework -> language -> commands. "{name}" is substituted.
FRONTEND_INIT = {
    "react": {
        "typescript": ["npx create-react-app {name} --template typescript"],
        "javascript": ["npx create-react-app {name}"],
    },
    "nextjs": {
        "typescript": ["npx create-next-app@latest {name} --ts --use-npm"],
        "javascript": ["npx create-next-app@latest {name} --js --use-npm"],
    },
    "vue": {
        "typescript": ["npm install -g @vue/cli", "vue create {name} --preset typescript"],
        "javascript": ["npm install -g @vue/cli", "vue create {name} --default"],
    },
    "svelte": {
        "typescript": ["npx degit sveltejs/template {name}", "cd {name}", "npm install",
                       "node scripts/setupTypeScript.js"],
        "javascript": ["npx degit sveltejs/template {name}", "cd {name}", "npm install"],
    },
    "angular": {
        "typescript": ["npm install -g @angular/cli", "ng new {name}"],
        "javascript": ["npm install -g @angular/cli", "ng new {name} --minimal"],
    },
    "vanilla": {
        "typescript": ["mkdir -p {name}/src", "cd {name}", "npm init -y",
                       "npm install -D webpack webpack-cli webpack-dev-server html-webpack-plugin",
                       "npm install -D typescript ts-loader"],
        "javascript": ["mkdir -p {name}/src", "cd {name}", "npm init -y",
                       "npm install -D webpack webpack-cli webpack-dev-server html-webpack-plugin"],
    },
}

# Frameworks whose init commands already leave the shell inside the project.
FRONTEND_ENTERS_PROJECT = {"svelte", "vanilla"}

STYLING_PACKAGES = {
    "css": [],
    "scss": ["npm install -D sass"],
    "tailwind": ["npm install -D tailwindcss postcss autoprefixer", "npx tailwindcss init -p"],
    "bootstrap": ["npm install bootstrap"],
}

BACKEND_PACKAGES = {
    "express": (["npm install express"],
                ["npm install -D typescript @types/express @types/node ts-node ts-node-dev"]),
    "fastify": (["npm install fastify"],
                ["npm install -D typescript @types/node ts-node ts-node-dev"]),
    "koa": (["npm install koa koa-router koa-bodyparser"],
            ["npm install -D typescript @types/koa @types/koa-router @types/koa-bodyparser "
             "@types/node ts-node ts-node-dev"]),
    "hapi": (["npm install @hapi/hapi"],
             ["npm install -D typescript @types/hapi__hapi @types/node ts-node ts-node-dev"]),
    "nest": (["npm i -g @nestjs/cli", "nest new {name} --package-manager npm"], []),
}

# database -> (runtime package, typescript typings or None)
DATABASE_PACKAGES = {
    "mongodb": ("npm install mongoose", None),
    "postgres": ("npm install pg", "npm install -D @types/pg"),
    "mysql": ("npm install mysql2", None),
    "sqlite": ("npm install sqlite3", "npm install -D @types/sqlite3"),
    "supabase": ("npm install @supabase/supabase-js", None),
}
