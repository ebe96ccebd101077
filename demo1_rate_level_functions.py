# -*- coding: utf-8 -*-
"""
Auditory-nerve rate-level functions at a single CF.

The rate-level function relates the sound level of a pure tone (in dB SPL)
to the average firing rate of a fiber. In the auditory nerve it typically
rises over 20-40 dB above threshold before saturating, at least for the
sensitive, low-threshold units. Responses are simulated for a high- (HSR),
a medium- (MSR) and a low-spontaneous-rate (LSR) fiber.

Sachs, M. B., and Abbas, P. J. (1974). "Rate versus level functions for
auditory-nerve fibers in cats: tone-burst stimuli," The Journal of the
Acoustical Society of America, 56, 1835-1847. doi:10.1121/1.1903521
"""

from an_functions import *
from an_model import *
import matplotlib.pyplot as plt
from time import time

tf.compat.v1.disable_eager_execution() # speeds up execution in Tensorflow v2

#################### Simulation parameter definition #########################
levels = np.arange(0., 80.1, 5.) # dB SPL
cf = 1e3 # Hz
dur = 0.1 # s
dur_ramp = 0.01 # s
fs = 100e3 # sampling rate (Hz)
fiber_types = ['high', 'medium', 'low']

#################### Main script #############################################
models = build_connear(Ncf=1)
model_cfs = load_cfs()

mu = np.zeros((len(levels), len(fiber_types)))

print('Simulating rate-level functions')
time_elapsed=time()
for ii, L in enumerate(levels):
    stim = quick_tone(freq=cf, dur=dur, dur_ramp=dur_ramp, level=L, fs=fs)
    for jj, fiber_type in enumerate(fiber_types):
        resp = auditory_model(stim, fs, [cf], fiber_type=fiber_type, models=models, model_cfs=model_cfs)
        # average the instantaneous rate over the stimulus
        mu[ii, jj] = mean_rate(resp.an[:,0], resp.fs, 0., dur)
time_elapsed = time() - time_elapsed
print('Simulation finished in ' + '%.2f' % time_elapsed + ' seconds')

#################### Plot the responses ######################################
plt.figure(1, figsize=(6, 4), facecolor='w', edgecolor='k')
plt.plot(levels, mu),plt.grid()
plt.xlabel('Level [dB SPL]'),plt.ylabel('Firing rate [spikes/s]')
plt.ylim(0,250)
plt.title('CF of ' + '%.2f' % resp.cfs[0] + ' Hz')
plt.legend(['HSR', 'MSR', 'LSR'],frameon=False,loc='upper left')
plt.tight_layout()

plt.show()
