# -*- coding: utf-8 -*-
"""
Auditory-nerve phase locking as a function of frequency.

Below about 2-4 kHz, auditory-nerve fibers fire in synchrony with the
stimulus: spikes tend to occur at a particular phase of each cycle. For a
pure tone at CF, the strength of phase locking, measured with the vector
strength (or synchronization index), decreases systematically with
frequency above ~2 kHz. Here it is measured for tones at CF at a constant
level of 50 dB SPL in a high-spontaneous-rate fiber, together with the
period histograms of the responses.

Rose, J. E., Brugge, J. F., Anderson, D. J., and Hind, J. E. (1967).
"Phase-locked response to low-frequency tones in single auditory nerve
fibers of the squirrel monkey," Journal of Neurophysiology, 30, 769-793.

Weiss, T. F., and Rose, C. (1988). "A comparison of synchronization
filters in different auditory receptor organs," Hearing Research, 33,
175-180.

Verschooten, E., et al. (2019). "The upper frequency limit for the use of
phase locking to code temporal fine structure in humans: a compilation of
viewpoints," Hearing Research, 377, 109-121.
"""

from an_functions import *
from an_model import *
import matplotlib.pyplot as plt
from time import time

tf.compat.v1.disable_eager_execution() # speeds up execution in Tensorflow v2

#################### Simulation parameter definition #########################
level = 50. # dB SPL
freqs = octave_spaced(250., 8e3, 1/4) # Hz, quarter-octave steps
dur = 0.1 # s
dur_ramp = 0.01 # s
fs = 100e3 # sampling rate (Hz)
n_bin = 16 # bins of the period histograms

#################### Main script #############################################
models = build_connear(Ncf=1)
model_cfs = load_cfs()

vs = np.zeros(len(freqs)) # vector strength at each frequency
hs = np.zeros((len(freqs), n_bin)) # period histograms at each frequency
cfs = np.zeros(len(freqs)) # simulated CFs

print('Simulating phase locking at CF')
time_elapsed=time()
for ii, f in enumerate(freqs):
    stim = quick_tone(freq=f, dur=dur, dur_ramp=dur_ramp, level=level, fs=fs)
    resp = auditory_model(stim, fs, [f], fiber_type='high', models=models, model_cfs=model_cfs)
    cfs[ii] = resp.cfs[0]
    # skip the onset ramp, where the response is dominated by the onset peak;
    # t_start keeps the phases referenced to the stimulus onset
    i_start = n_samples(dur_ramp, resp.fs)
    an = resp.an[i_start:, 0]
    vs[ii] = vector_strength(an, resp.fs, f, t_start=i_start/resp.fs)
    hs[ii], edges = period_histogram(an, resp.fs, f, n_bin=n_bin, t_start=i_start/resp.fs)
time_elapsed = time() - time_elapsed
print('Simulation finished in ' + '%.2f' % time_elapsed + ' seconds')

#################### Plot the responses ######################################
plt.figure(1, figsize=(6, 4), facecolor='w', edgecolor='k')
plt.semilogx(freqs, vs),plt.grid()
plt.xlabel('Frequency/CF [Hz]'),plt.ylabel('Vector strength [0, 1]')
plt.ylim(0,1)
plt.tight_layout()

plt.figure(2, figsize=(16, 3), facecolor='w', edgecolor='k')
for ii in range(len(freqs)):
    ax = plt.subplot(1,len(freqs),ii+1)
    plt.stairs(hs[ii], edges, fill=True)
    plt.ylim(0,hs.max())
    if ii > 0:
        ax.set_yticklabels([])
    plt.title('CF = %.1f' % cfs[ii], fontsize=8)
    plt.xlabel('Phase [rad]')
plt.tight_layout()

plt.show()
