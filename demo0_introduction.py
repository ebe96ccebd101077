# -*- coding: utf-8 -*-
"""
An introduction to the auditory nerve and auditory-nerve modeling.

This script walks through the basic ingredients used by the other demos:
synthesizing a calibrated pure-tone stimulus, passing it to the auditory-nerve
model and looking at how the simulated responses change with sound level and
with frequency.

It assumes basic familiarity with frequency (Hz), sound level (dB SPL, see
https://en.wikipedia.org/wiki/Sound_pressure) and sampling rates. The model
backend is the CoNNear periphery; set CONNEAR_MODELDIR to the directory
holding its model files before running the script.
"""

from an_functions import *
from an_model import *
import matplotlib.pyplot as plt
from time import time

tf.compat.v1.disable_eager_execution() # speeds up execution in Tensorflow v2

#################### Part 1: Pure-tone stimuli ###############################
# The model operates on time-pressure waveforms in Pa. The sampling rate of the
# stimulus needs to be high to avoid aliasing from the nonlinearities of the
# periphery (e.g. the IHC input-output function).
fs = 100e3 # Hz

# Pure tones are the most common laboratory stimulus in auditory research:
# - frequencies of 0.5-8 kHz are most typical (most energy in speech is there)
# - the duration needs to be long enough to elicit a meaningful response
#   (> a few ms), but simulations of several seconds get slow
# - the stimulus is ramped to avoid discontinuities at its onset/offset
# - levels between -10 and 90 dB SPL are physiologically meaningful
freq = 1000. # Hz
level = 20. # dB SPL
dur = 0.1 # s
dur_ramp = 0.01 # s

# Time at the beginning of each sample
t = time_axis(n_samples(dur, fs), fs)

# Synthesize the sinusoid, scale it to the requested level (the sqrt(2) turns
# the peak amplitude into an RMS of 1) and ramp it
p = np.sin(2 * np.pi * freq * t)
p = P0 * 10**(level/20) * np.sqrt(2) * p
p = cosine_ramp(p, dur_ramp, fs)

plt.figure(1, figsize=(8, 4), facecolor='w', edgecolor='k')
plt.plot(t, p),plt.grid()
plt.xlabel('Time [s]'),plt.ylabel('Pressure [Pa]')
plt.tight_layout()

# The same stimulus in a single call
plt.figure(2, figsize=(8, 4), facecolor='w', edgecolor='k')
plt.plot(t, quick_tone(freq=freq, level=level, dur=dur, fs=fs, dur_ramp=dur_ramp)),plt.grid()
plt.xlabel('Time [s]'),plt.ylabel('Pressure [Pa]')
plt.tight_layout()

#################### Part 2: Basic pure-tone response ########################
cf = 2000. # Hz
dur_post = 0.02 # s - offset responses are interesting too

# Load the model once and reuse it for all simulations below. The 1-CF IHC-ANF
# modules are enough as we only look at a single CF.
models = build_connear(Ncf=1)
model_cfs = load_cfs()

p = quick_tone(freq=freq, level=level, dur=dur, fs=fs, dur_ramp=dur_ramp)
resp = auditory_model(p, fs, [cf], models=models, model_cfs=model_cfs, dur_post=dur_post)
print('Simulated CF: %.2f Hz' % resp.cfs[0])

# resp.ihc holds the IHC response over time and resp.an the instantaneous ANF
# rate, which can be seen as the arrival rate of a non-homogeneous Poisson
# process (an imperfect approximation because of refractoriness).
t_stim = time_axis(p.size, fs)
t_model = time_axis(resp.an.shape[0], resp.fs)
plt.figure(3, figsize=(8, 6), facecolor='w', edgecolor='k')
plt.subplot(3,1,1),plt.plot(t_stim, p),plt.grid()
plt.xlim(0,0.12),plt.ylabel('Pressure [Pa]')
plt.subplot(3,1,2),plt.plot(t_model, 1e3*resp.ihc[:,0]),plt.grid()
plt.xlim(0,0.12),plt.ylabel('$V_{ihc}$ [mV]')
plt.subplot(3,1,3),plt.plot(t_model, resp.an[:,0]),plt.grid()
plt.xlim(0,0.12),plt.ylabel('Rate [spikes/s]'),plt.xlabel('Time [s]')
plt.tight_layout()

#################### Part 3: Varying sound level #############################
freq = 2000. # Hz
levels = np.arange(-20., 81., 20.) # dB SPL

time_elapsed = time()
resps = []
for L in levels:
    stim = quick_tone(freq=freq, dur=dur, dur_ramp=dur_ramp, level=L, fs=fs)
    resps.append(auditory_model(stim, fs, [cf], models=models, model_cfs=model_cfs, dur_post=dur_post))
print('Level sweep finished in ' + '%.2f' % (time() - time_elapsed) + ' seconds')

# Fixed ylimits across panels, to allow absolute comparisons between levels
plt.figure(4, figsize=(8, 10), facecolor='w', edgecolor='k')
for i, ii in enumerate(range(len(levels) - 1, -1, -1)): # highest level on top
    anr = resps[ii].an[:,0]
    plt.subplot(len(levels),1,i+1),plt.plot(time_axis(anr.size, resps[ii].fs), anr),plt.grid()
    plt.ylim(0,1250),plt.ylabel('Rate [spikes/s]')
    plt.title('Level = %d dB SPL' % levels[ii])
plt.xlabel('Time [s]')
plt.tight_layout()

#################### Part 4: Varying frequency ###############################
# The periphery is sharply tuned, so the frequencies are varied in a limited
# range around the CF, with logarithmic spacing as along the tonotopic axis.
level = 40. # dB SPL
freqs = log_spaced(cf/1.5, cf*1.5, 7) # Hz

time_elapsed = time()
resps = []
for f in freqs:
    stim = quick_tone(freq=f, dur=dur, dur_ramp=dur_ramp, level=level, fs=fs)
    resps.append(auditory_model(stim, fs, [cf], models=models, model_cfs=model_cfs, dur_post=dur_post))
print('Frequency sweep finished in ' + '%.2f' % (time() - time_elapsed) + ' seconds')

plt.figure(5, figsize=(8, 12), facecolor='w', edgecolor='k')
for i, ii in enumerate(range(len(freqs) - 1, -1, -1)): # highest frequency on top
    anr = resps[ii].an[:,0]
    plt.subplot(len(freqs),1,i+1),plt.plot(time_axis(anr.size, resps[ii].fs), anr),plt.grid()
    plt.ylim(0,1250),plt.ylabel('Rate [spikes/s]')
    plt.title('Freq = %.2f kHz, %.2f octaves re: CF' % (freqs[ii]/1e3, np.log2(freqs[ii]/cf)))
plt.xlabel('Time [s]')
plt.tight_layout()

plt.show()
