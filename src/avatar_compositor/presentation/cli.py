"""CLI interface for the avatar compositor."""

import argparse
import json
import sys
from pathlib import Path

from avatar_compositor.application.factories import create_orchestrator
from avatar_compositor.domain.exceptions import ConfigurationError
from avatar_compositor.infrastructure.config import ConfigLoader
from avatar_compositor.shared.logging import setup_logger, get_logger


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="avatar-compositor",
        description="Overlay an avatar video onto a background video and mux an audio track"
    )
    parser.add_argument('--config', type=Path, help='Config YAML file')
    parser.add_argument('--verbose', '-v', action='store_true', help='Verbose')

    subparsers = parser.add_subparsers(dest='command', required=True)

    serve = subparsers.add_parser('serve', help='Run the HTTP service')
    serve.add_argument('--host', help='Bind address (default from config)')
    serve.add_argument('--port', type=int, help='Bind port (default from config)')

    run = subparsers.add_parser('run', help='Process a single job and print the JSON response')
    run.add_argument('--background', required=True, help='Background video locator (gs://bucket/path)')
    run.add_argument('--avatar', required=True, help='Avatar video locator')
    run.add_argument('--audio', required=True, help='Audio track locator')
    run.add_argument('--bucket', required=True, help='Output bucket')
    run.add_argument('--key', required=True, help='Output object name')

    return parser


def main(argv=None) -> int:
    """Main CLI entry point."""
    args = build_parser().parse_args(argv)

    try:
        overrides = {}
        if getattr(args, 'host', None):
            overrides['host'] = args.host
        if getattr(args, 'port', None):
            overrides['port'] = args.port
        if args.verbose:
            overrides['log_level'] = 'DEBUG'
        config = ConfigLoader(config_path=args.config).load(overrides=overrides)
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2

    setup_logger('avatar_compositor', level=config.log_level)
    logger = get_logger(__name__)

    try:
        orchestrator = create_orchestrator(config)
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        return 2

    if args.command == 'serve':
        import uvicorn
        from avatar_compositor.presentation.http import create_app

        logger.info(f"Serving on {config.host}:{config.port}")
        uvicorn.run(
            create_app(orchestrator),
            host=config.host,
            port=config.port,
            log_level=config.log_level.lower()
        )
        return 0

    response = orchestrator.handle({
        'backgroundVideoGcsPath': args.background,
        'avatarVideoGcsPath': args.avatar,
        'audioGcsPath': args.audio,
        'outputGcsBucket': args.bucket,
        'outputGcsFileName': args.key,
    })
    print(json.dumps(response.body, indent=2))
    return 0 if response.ok else 1


if __name__ == "__main__":
    sys.exit(main())
