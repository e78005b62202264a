"""Node.js builtin module names, filtered out before dependency lookup."""

NODE_BUILTIN_MODULES: frozenset[str] = frozenset(
    {
        "assert",
        "async_hooks",
        "buffer",
        "child_process",
        "cluster",
        "console",
        "constants",
        "crypto",
        "dgram",
        "diagnostics_channel",
        "dns",
        "domain",
        "events",
        "fs",
        "http",
        "http2",
        "https",
        "inspector",
        "module",
        "net",
        "os",
        "path",
        "perf_hooks",
        "process",
        "punycode",
        "querystring",
        "readline",
        "repl",
        "stream",
        "string_decoder",
        "sys",
        "timers",
        "tls",
        "trace_events",
        "tty",
        "url",
        "util",
        "v8",
        "vm",
        "wasi",
        "worker_threads",
        "zlib",
    }
)


def is_node_builtin(module: str) -> bool:
    """True for ``fs``, ``fs/promises``, ``node:test`` and friends."""
    module = module.strip()
    if not module:
        return False
    if module.startswith("node:"):
        return True
    return module.split("/", 1)[0] in NODE_BUILTIN_MODULES
