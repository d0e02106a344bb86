import argparse
import logging
import sys
from pathlib import Path

# Add project root to path
sys.path.append(str(Path(__file__).parent))

import jsonschema

from dialogue.config import DialogueConfig
from dialogue.environment import ScopeManifest
from dialogue.library import ScriptLibrary
from dialogue.lint import has_errors, lint_library
from dialogue.placeholders import LoreContext


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Lint every dialogue script before release.")
    parser.add_argument("script_dir", nargs="?", default="game/data/dialogue")
    parser.add_argument("--manifest", default=None, help="Scope manifest (default: <script_dir>/scopes.json)")
    parser.add_argument("--token", action="append", default=[], help="Extra placeholder token to accept")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO)
    logger = logging.getLogger("ScriptVerification")

    config = DialogueConfig(script_dir=args.script_dir, manifest_path=args.manifest)

    try:
        manifest = ScopeManifest.load(config.manifest_path)
    except (OSError, ValueError, jsonschema.ValidationError) as e:
        logger.error(f"VERIFICATION FAILED: bad scope manifest {config.manifest_path}: {e}")
        return 1

    library = ScriptLibrary(config, manifest)
    library.load_all()

    issues = lint_library(library, LoreContext.known_tokens(tuple(args.token)))
    for issue in issues:
        if has_errors([issue]):
            logger.error(str(issue))
        else:
            logger.warning(str(issue))

    if has_errors(issues):
        logger.error(f"VERIFICATION FAILED: {len(issues)} issues in {len(library.archetypes)} scripts")
        return 1

    logger.info(f"VERIFICATION SUCCESSFUL: {len(library.archetypes)} scripts checked.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
