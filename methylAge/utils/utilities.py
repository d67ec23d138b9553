#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
@author: sbesnard
@File    :   utilities.py
@Time    :   Mon Sep 26 10:47:17 2022
@Author  :   Simon Besnard
@Version :   1.0
@Contact :   besnard@gfz-potsdam.de
@License :   (C)Copyright 2022-2023, GFZ-Potsdam
@Desc    :   Helpers for timing, seeding and device selection
"""
import logging
import random
import time

import numpy as np
import torch

LOGGER = logging.getLogger(__name__)

def _format_duration(time_to_run: float) -> str:
    return "{0:.2f} {1}".format(time_to_run/60 if time_to_run>60 else time_to_run,
                                'min' if time_to_run>60 else 'sec')

class TimeKeeper:

    def __init__(self, n_folds=1):
        self.start_time = time.time()
        self.lap_time   = time.time()
        self.n_folds    = n_folds
        self.counter    = 0
        self.lap_history = []

    def lap(self, message="{lap_time}", log_flag=True, skip_history=False):
        time_to_run = time.time() - self.lap_time
        lap_time    = _format_duration(time_to_run)
        if log_flag:
            LOGGER.info(message.format(lap_time=lap_time))

        if not skip_history:
            self.lap_history.append(time_to_run)

        self.lap_time   = time.time()
        self.counter += 1
        return lap_time

    def total_time(self, message="{total_time}", log_flag=True):
        total_time  = _format_duration(time.time() - self.start_time)
        if log_flag:
            LOGGER.info(message.format(total_time=total_time))

        return total_time

    def time_left(self, message="{total_time}, est. remaining: {time_left}", log_flag=True):
        total_time = self.total_time(log_flag=False)
        mean_time  = np.mean(self.lap_history) if self.lap_history else 0.0
        time_left = _format_duration((mean_time*self.n_folds) - (mean_time*self.counter))
        if log_flag:
            LOGGER.info(message.format(total_time=total_time, time_left=time_left))

        return time_left

def set_seed(seed: int) -> None:
    """Seed python, numpy and torch random generators."""
    random.seed(seed)
    np.random.seed(seed)
    torch.manual_seed(seed)
    if torch.cuda.is_available():
        torch.cuda.manual_seed_all(seed)

def resolve_device(device: str = 'auto') -> torch.device:
    """Return the torch device for `device`.

    `auto` picks cuda when available, then mps, then cpu.
    """
    if device != 'auto':
        return torch.device(device)
    if torch.cuda.is_available():
        return torch.device('cuda')
    if getattr(torch.backends, 'mps', None) is not None and torch.backends.mps.is_available():
        return torch.device('mps')
    return torch.device('cpu')
