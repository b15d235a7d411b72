"""
Static lookup tables: alternatives, priorities, target descriptions and the
fix database. Read-only; loaded once at import.
"""

from types import MappingProxyType


ALTERNATIVES = MappingProxyType({
    "flexbox": ("float layouts", "CSS tables", "inline-block"),
    "css-grid": ("flexbox", "float layouts", "CSS tables"),
    "css-variables": ("Sass variables", "Less variables", "PostCSS custom properties"),
    "css-snappoints": ("JavaScript scroll libraries", "manual scroll handling"),
    "object-fit": ("background-size on div wrappers", "manual image cropping"),
    "css-sticky": ("JavaScript scroll positioning", "fixed positioning"),
    "css-filters": ("SVG filters", "Canvas manipulation", "image processing libraries"),
    "css-masks": ("SVG clipping paths", "background images with transparency"),
    "transform3d": ("2D transforms", "JavaScript animation libraries"),
    "css-animation": ("jQuery animations", "JavaScript animation libraries"),
    "css-transitions": ("jQuery animations", "JavaScript animation libraries"),
})

GENERIC_ALTERNATIVES = (
    "Consider using a polyfill",
    "Use progressive enhancement",
    "Implement JavaScript fallback",
)

FEATURE_PRIORITY = MappingProxyType({
    "critical": ("flexbox", "css-grid", "es6-class", "arrow-functions"),
    "high": ("css-variables", "const", "let", "template-literals"),
    "medium": ("css-transforms", "css-transitions", "destructuring", "spread-syntax"),
    "low": ("css-filters", "css-masks", "for-of", "array-includes"),
})

TARGET_DESCRIPTIONS = MappingProxyType({
    "chrome-37": "Chrome 37 (Legacy Android support)",
    "chrome-latest": "Latest Chrome (Modern features)",
    "firefox-esr": "Firefox ESR (Enterprise support)",
    "safari-12": "Safari 12 (iOS 12+ compatibility)",
    "ie-11": "Internet Explorer 11 (Legacy Windows)",
    "edge-legacy": "Edge Legacy (Pre-Chromium Edge)",
})

# caniuse browser id -> browserslist name
BROWSERSLIST_NAMES = MappingProxyType({
    "chrome": "Chrome",
    "firefox": "Firefox",
    "safari": "Safari",
    "ie": "IE",
    "edge": "Edge",
    "opera": "Opera",
    "ios_saf": "iOS",
    "android": "Android",
    "samsung": "Samsung",
})

BABEL_FEATURES = ("arrow-functions", "const", "template-literals", "promises")
POSTCSS_FEATURES = ("css-variables", "flexbox", "css-grid")


FIX_DATABASE = MappingProxyType({
    # CSS
    "css-grid": {
        "priority": "critical",
        "alternatives": ["flexbox", "CSS tables", "float layouts"],
        "polyfills": ["CSS Grid Polyfill"],
        "build_steps": [
            "npm install postcss-grid-kiss --save-dev",
            "Add postcss-grid-kiss to PostCSS plugins",
        ],
        "css_example": (
            "/* Instead of Grid */\n"
            ".container { display: grid; grid-template-columns: 1fr 2fr; }\n\n"
            "/* Use Flexbox */\n"
            ".container { display: flex; }\n"
            ".item1 { flex: 1; }\n"
            ".item2 { flex: 2; }"
        ),
        "documentation": "https://css-tricks.com/snippets/css/complete-guide-grid/",
    },
    "flexbox": {
        "priority": "high",
        "alternatives": ["CSS tables", "inline-block", "float layouts"],
        "polyfills": ["flexibility.js", "flexie"],
        "build_steps": [
            "npm install flexibility --save",
            "Add flexibility polyfill to your HTML",
        ],
        "css_example": (
            "/* Add vendor prefixes */\n"
            ".container {\n"
            "  display: -webkit-flex;\n"
            "  display: flex;\n"
            "  -webkit-justify-content: center;\n"
            "  justify-content: center;\n"
            "}"
        ),
        "documentation": "https://css-tricks.com/snippets/css/a-guide-to-flexbox/",
    },
    "css-variables": {
        "priority": "medium",
        "alternatives": ["Sass variables", "Less variables", "PostCSS custom properties"],
        "polyfills": ["css-vars-ponyfill"],
        "build_steps": [
            "npm install css-vars-ponyfill --save",
            "npm install postcss-custom-properties --save-dev",
        ],
        "css_example": (
            "/* Instead of CSS Variables */\n"
            ":root { --main-color: blue; }\n"
            ".element { color: var(--main-color); }\n\n"
            "/* Use fixed values with Sass */\n"
            "$main-color: blue;\n"
            ".element { color: $main-color; }"
        ),
        "documentation": "https://developer.mozilla.org/en-US/docs/Web/CSS/Using_CSS_custom_properties",
    },
    "object-fit": {
        "priority": "medium",
        "alternatives": ["background-size on wrapper divs"],
        "polyfills": ["object-fit-images"],
        "build_steps": [
            "npm install object-fit-images --save",
            "Import and initialize polyfill in JS",
        ],
        "css_example": (
            "/* Use background approach */\n"
            ".img-wrapper {\n"
            "  background-image: url(image.jpg);\n"
            "  background-size: cover;\n"
            "  background-position: center;\n"
            "}"
        ),
        "js_example": "import objectFitImages from 'object-fit-images';\nobjectFitImages();",
        "documentation": "https://github.com/bfred-it/object-fit-images",
    },
    # JavaScript
    "arrow-functions": {
        "priority": "high",
        "alternatives": ["function expressions", "regular functions"],
        "polyfills": [],
        "build_steps": [
            "npm install @babel/preset-env --save-dev",
            'Add "@babel/preset-env" to .babelrc presets',
        ],
        "js_example": (
            "// Instead of arrow functions\n"
            "const add = (a, b) => a + b;\n\n"
            "// Use regular functions\n"
            "var add = function(a, b) { return a + b; };"
        ),
        "documentation": "https://developer.mozilla.org/en-US/docs/Web/JavaScript/Reference/Functions/Arrow_functions",
    },
    "const": {
        "priority": "high",
        "alternatives": ["var declarations"],
        "polyfills": [],
        "build_steps": [
            "npm install @babel/preset-env --save-dev",
            "Configure Babel to transpile const/let",
        ],
        "js_example": "// Use var (with careful scoping)\nvar value = 'hello';\nvar counter = 0;",
        "documentation": "https://developer.mozilla.org/en-US/docs/Web/JavaScript/Reference/Statements/const",
    },
    "template-literals": {
        "priority": "medium",
        "alternatives": ["string concatenation"],
        "polyfills": [],
        "build_steps": [
            "npm install @babel/preset-env --save-dev",
            "Enable template literal transformation",
        ],
        "js_example": "// Use concatenation\nvar message = 'Hello ' + name + '!';",
        "documentation": "https://developer.mozilla.org/en-US/docs/Web/JavaScript/Reference/Template_literals",
    },
    "promises": {
        "priority": "critical",
        "alternatives": ["callbacks", "async libraries"],
        "polyfills": ["es6-promise", "core-js"],
        "build_steps": [
            "npm install es6-promise --save",
            "Import polyfill at app entry point",
        ],
        "js_example": "// Import Promise polyfill\nimport 'es6-promise/auto';",
        "documentation": "https://developer.mozilla.org/en-US/docs/Web/JavaScript/Reference/Global_Objects/Promise",
    },
})
