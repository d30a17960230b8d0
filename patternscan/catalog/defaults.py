"""Built-in signature catalog and category guidelines."""

from __future__ import annotations

from copy import deepcopy
from typing import Any

DEFAULT_CATEGORIES: tuple[str, ...] = (
    "code-injection",
    "credential-exposure",
    "data-leak",
    "xss-vulnerability",
    "web-security",
    "input-validation",
    "type-safety",
    "runtime-safety",
    "resource-leak",
    "cryptographic-weakness",
    "performance-security",
)

DEFAULT_SIGNATURES: list[dict[str, Any]] = [
    {
        "id": "eval-usage",
        "name": "Eval Usage",
        "pattern": r"\beval\s*\(",
        "severity": "critical",
        "category": "code-injection",
        "description": "Use of eval() function creates code injection risk",
        "recommendation": "Replace eval() with safer alternatives",
    },
    {
        "id": "function-constructor",
        "name": "Function Constructor",
        "pattern": r"new\s+Function\s*\(",
        "severity": "high",
        "category": "code-injection",
        "description": "Function constructor can execute arbitrary code",
        "recommendation": "Use safer alternatives to Function constructor",
        "source": "backup-analysis",
    },
    {
        "id": "hardcoded-credentials",
        "name": "Hardcoded Credentials",
        "pattern": r"(password|secret|key)\s*[:=]\s*['\"][^'\"]{8,}",
        "flags": "i",
        "severity": "critical",
        "category": "credential-exposure",
        "description": "Hardcoded credentials found in source code",
        "recommendation": "Move credentials to environment variables",
        "source": "backup-analysis",
    },
    {
        "id": "api-key-exposure",
        "name": "API Key Exposure",
        "pattern": r"(api[_-]?key|apikey)\s*[:=]\s*['\"][^'\"]+",
        "flags": "i",
        "severity": "critical",
        "category": "credential-exposure",
        "description": "API keys hardcoded in source code",
        "recommendation": "Load API keys from environment variables or a secret store",
        "source": "backup-analysis",
    },
    {
        "id": "password-console-leak",
        "name": "Password Console Leak",
        "pattern": r"console\.(log|info|debug|warn)\(.*password",
        "flags": "i",
        "severity": "critical",
        "category": "data-leak",
        "description": "Password data potentially logged to console",
        "recommendation": "Remove password logging or use secure logging methods",
        "source": "backup-analysis",
    },
    {
        "id": "secret-console-leak",
        "name": "Secret Console Leak",
        "pattern": r"console\.(log|info|debug|warn)\(.*secret",
        "flags": "i",
        "severity": "critical",
        "category": "data-leak",
        "description": "Secret data potentially logged to console",
        "recommendation": "Remove secret logging or use secure logging methods",
        "source": "backup-analysis",
    },
    {
        "id": "token-console-leak",
        "name": "Token Console Leak",
        "pattern": r"console\.(log|info|debug|warn)\(.*token",
        "flags": "i",
        "severity": "high",
        "category": "data-leak",
        "description": "Token data potentially logged to console",
        "recommendation": "Remove token logging or mask sensitive parts",
        "source": "backup-analysis",
    },
    {
        "id": "localstorage-password",
        "name": "Password in LocalStorage",
        "pattern": r"localStorage\.setItem\(.*password",
        "flags": "i",
        "severity": "critical",
        "category": "data-leak",
        "description": "Password stored in localStorage (unencrypted)",
        "recommendation": "Use secure storage or encrypt sensitive data",
        "source": "backup-analysis",
    },
    {
        "id": "sessionstorage-sensitive",
        "name": "Sensitive Data in SessionStorage",
        "pattern": r"sessionStorage\.setItem\(.*(password|secret|token|key)",
        "flags": "i",
        "severity": "high",
        "category": "data-leak",
        "description": "Sensitive data stored in sessionStorage",
        "recommendation": "Use secure storage methods for sensitive data",
        "source": "backup-analysis",
    },
    {
        "id": "direct-innerhtml",
        "name": "Direct innerHTML Usage",
        "pattern": r"\.innerHTML\s*=",
        "severity": "high",
        "category": "xss-vulnerability",
        "description": "Direct innerHTML usage without sanitization",
        "recommendation": "Use DOMPurify.sanitize() before setting innerHTML",
    },
    {
        "id": "dangerously-set-inner-html",
        "name": "dangerouslySetInnerHTML",
        "pattern": r"dangerouslySetInnerHTML\s*=\s*\{",
        "severity": "high",
        "category": "xss-vulnerability",
        "description": "React raw HTML injection bypasses escaping",
        "recommendation": "Sanitize the HTML or render structured content instead",
    },
    {
        "id": "unvalidated-user-input",
        "name": "Unvalidated User Input",
        "pattern": r"req\.(body|query|params)\.[a-zA-Z_$][a-zA-Z0-9_$]*(?!\s*[&|])",
        "severity": "high",
        "category": "input-validation",
        "description": "User input used without validation",
        "recommendation": "Validate request data with a schema before use",
        "source": "backup-analysis",
    },
    {
        "id": "unsafe-type-assertion",
        "name": "Unsafe Type Assertion",
        "pattern": r"\bas\s+any\b",
        "severity": "high",
        "category": "type-safety",
        "description": "Type assertion bypasses TypeScript type checking",
        "recommendation": 'Define proper interface instead of "as any"',
    },
    {
        "id": "unsafe-object-spread",
        "name": "Unsafe Object Spread",
        "pattern": r"\.\.\.\(?[^,;\n]*\bas\s+any\b",
        "severity": "high",
        "category": "type-safety",
        "description": "Spreading objects typed as any introduces unexpected properties",
        "recommendation": "Spread a typed object or pick known fields explicitly",
        "source": "backup-analysis",
    },
    {
        "id": "unsafe-json-parse",
        "name": "Unsafe JSON Parsing",
        "pattern": r"JSON\.parse\([^)]*\)\s*(?!\.catch|try)",
        "severity": "medium",
        "category": "runtime-safety",
        "description": "JSON.parse without try-catch can cause runtime errors",
        "recommendation": "Wrap JSON.parse in try/catch and validate the result",
        "source": "backup-analysis",
    },
    {
        "id": "unclosed-db-query",
        "name": "Unclosed Database Connections",
        "pattern": r"\.(query|execute)\s*\([^)]*\)(?!\s*\.finally|\s*\.catch|\s*try)",
        "severity": "high",
        "category": "resource-leak",
        "description": "Database operations without proper cleanup",
        "recommendation": "Release connections in finally blocks or use a pool helper",
        "source": "backup-analysis",
    },
    {
        "id": "insecure-random",
        "name": "Insecure Random Generation",
        "pattern": r"Math\.random\(\)",
        "severity": "medium",
        "category": "cryptographic-weakness",
        "description": "Math.random() not cryptographically secure",
        "recommendation": "Use crypto.getRandomValues() or crypto.randomBytes()",
        "source": "backup-analysis",
    },
    {
        "id": "sync-file-operation",
        "name": "Synchronous File Operations",
        "pattern": r"fs\.(readFileSync|writeFileSync|existsSync)",
        "severity": "medium",
        "category": "performance-security",
        "description": "Synchronous file operations can block event loop",
        "recommendation": "Use the fs/promises API in request paths",
        "source": "backup-analysis",
    },
    {
        "id": "disabled-tls-verification",
        "name": "Disabled TLS Verification",
        "pattern": r"rejectUnauthorized\s*:\s*false|NODE_TLS_REJECT_UNAUTHORIZED\s*=\s*['\"]?0",
        "severity": "high",
        "category": "web-security",
        "description": "TLS certificate verification is turned off",
        "recommendation": "Keep certificate verification enabled and trust a proper CA bundle",
    },
]

DEFAULT_GUIDELINES: dict[str, dict[str, Any]] = {
    "type-safety": {
        "priority": "high",
        "approach": "Gradual typing improvements with interface definitions",
        "testingRequired": True,
    },
    "credential-exposure": {
        "priority": "critical",
        "approach": "Environment variable migration with .env.example template",
        "testingRequired": True,
    },
    "input-validation": {
        "priority": "high",
        "approach": "Add validation middleware using existing patterns",
        "testingRequired": True,
    },
    "web-security": {
        "priority": "high",
        "approach": "Extend existing security headers configuration",
        "testingRequired": True,
    },
    "data-leak": {
        "priority": "critical",
        "approach": "Route sensitive values through a redacting logger",
        "testingRequired": False,
    },
}


def default_catalog_document() -> dict[str, Any]:
    """Return a fresh copy of the built-in catalog document."""
    return {
        "version": 1,
        "categories": list(DEFAULT_CATEGORIES),
        "signatures": deepcopy(DEFAULT_SIGNATURES),
        "guidelines": deepcopy(DEFAULT_GUIDELINES),
    }
