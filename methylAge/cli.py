#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
# SPDX-FileCopyrightText: 2024 Helmholtz Centre Potsdam - GFZ German Research Centre for Geosciences
# SPDX-FileCopyrightText: 2024 Simon Besnard
# SPDX-License-Identifier: EUPL-1.2
# Version :   1.0
# Contact :   besnard@gfz-potsdam.de
# File    :   cli.py

Command line entry point: `methylAge-study CONFIG --base-dir DIR`.
"""
import logging
import sys
from argparse import ArgumentParser

import pandas as pd

from methylAge.config import load_config
from methylAge.core.study import Study
from methylAge.exceptions import ConfigurationError

LOGGER = logging.getLogger('methylAge.cli')

def get_parser() -> ArgumentParser:
    parser = ArgumentParser(prog='methylAge-study',
                            description='Train and compare age regressors on several probe sets.')
    parser.add_argument('config', help='path to the YAML study configuration')
    parser.add_argument('--base-dir', default='.', help='base output directory (default: .)')
    parser.add_argument('--exp-name', default='probe_sets', help='study name (default: probe_sets)')
    parser.add_argument('--study-dir', default=None, help='restore into an existing study directory')
    parser.add_argument('--log-level', default='INFO',
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
                        help='logging level (default: INFO)')
    return parser

def main(argv=None) -> int:
    args = get_parser().parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level),
                        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')

    try:
        config = load_config(args.config)
    except ConfigurationError as e:
        LOGGER.error('invalid configuration: %s', e)
        return 2

    study_ = Study(config=config, base_dir=args.base_dir, exp_name=args.exp_name, study_dir=args.study_dir)
    results = study_.run()

    with pd.option_context('display.max_columns', None, 'display.width', 200):
        print(results.summary().drop(columns=['error']).to_string(index=False))
    for failure in results.failures:
        print(f'{failure.probe_set}: {failure.error_type} during {failure.stage}: {failure.message}')
    print(f'best probe set: {results.best_probe_set}')
    print(f'results written to {study_.study_dir}')
    return 0

if __name__ == '__main__':
    sys.exit(main())
