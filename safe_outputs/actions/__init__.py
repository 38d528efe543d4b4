"""GitHub Actions entrypoint scripts. Each exposes ``async def main(runtime)``."""
