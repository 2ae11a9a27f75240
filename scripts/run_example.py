#!/usr/bin/env python3
"""
Utility script to train agents on the headless dino runner.

Usage:
    python scripts/run_example.py ga
    python scripts/run_example.py neat --generations 20
    python scripts/run_example.py ppo --export model.json
    python scripts/run_example.py neat --import model.json --inference
"""

import sys
import argparse
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from evodino import GAConfig, GAMode, NEATConfig, NEATMode, PPOConfig, PPOMode
from examples.dino_game import DinoGame


MODES = {
    'ga': {
        'mode': GAMode,
        'config': GAConfig,
        'description': 'Genetic algorithm over fixed-topology networks'
    },
    'neat': {
        'mode': NEATMode,
        'config': NEATConfig,
        'description': 'NEAT'
    },
    'ppo': {
        'mode': PPOMode,
        'config': PPOConfig,
        'description': 'Proximal Policy Optimization'
    }
}

CONFIG_FILE = Path(__file__).parent.parent / 'examples' / 'configs' / 'config_dino.ini'


def main():
    parser = argparse.ArgumentParser(description='Train agents on the headless dino runner')
    parser.add_argument('mode', choices=MODES.keys(),
                        help='Training mode')
    parser.add_argument('--config', default=str(CONFIG_FILE),
                        help='INI configuration file')
    parser.add_argument('--generations', type=int, default=None,
                        help='Override max_generations')
    parser.add_argument('--seed', type=int, default=0,
                        help='Seed of the obstacle course')
    parser.add_argument('--import', dest='import_file', default=None,
                        help='Load a previously exported model')
    parser.add_argument('--export', dest='export_file', default=None,
                        help='Write the best model to this file after training')
    parser.add_argument('--inference', action='store_true',
                        help='Run the imported or trained model once, without training')

    args = parser.parse_args()

    example = MODES[args.mode]
    print(f"Running {example['description']}...")

    game = DinoGame(seed=args.seed)
    mode = example['mode'](game)

    model = None if args.import_file is None else Path(args.import_file).read_text()

    if args.inference:
        if model is not None:
            mode.import_model(model)
    else:
        overrides = {} if args.generations is None else {'max_generations': args.generations}
        config = example['config'].from_file(args.config, **overrides)
        if config.max_generations is None:
            config.max_generations = 50
        mode.start_training(config)
        # The import replaces the best model of the live run
        if model is not None:
            mode.import_model(model)
        game.run()

        if args.export_file is not None:
            Path(args.export_file).write_text(mode.export_model())
            print(f"Model written to {args.export_file}")

    mode.start_inference()
    game.run()


if __name__ == '__main__':
    main()
