# -*- coding: utf-8 -*-
"""
Average auditory-nerve response as a function of time and frequency.

A population "neurogram" (or auditory spectrogram) shows the firing rate as
a function of time (x-axis) and CF (y-axis). The example below simulates the
neurogram of a single /hVd/ token from the North Texas Vowel Database and
compares it with a traditional spectrogram.

Things to try:
  - other tokens from https://personal.utdallas.edu/~assmann/KIDVOW1/North_Texas_vowel_database.html
    (change token_url)
  - a different sound level or fiber type
  - a narrowband/broadband spectrogram, by changing the STFT window n
"""

from an_functions import *
from an_model import *
import matplotlib.pyplot as plt
from time import time

tf.compat.v1.disable_eager_execution() # speeds up execution in Tensorflow v2

#################### Simulation parameter definition #########################
level = 50. # overall level of the stimulus (dB SPL)
fs = 100e3 # sampling rate of the stimulus (Hz)
cf_low = 125. # lowest CF (Hz)
cf_high = 12e3 # highest CF (Hz) - the CoNNear channels stop at ~12 kHz
n_cf = 121 # number of CFs
cfs = log_spaced(cf_low, cf_high, n_cf)
fiber_type = 'high'
token_url = 'http://www.utdallas.edu/~assmann/KIDVOW1/kabrii01.wav'
token_file = 'kabrii01.wav'
n = 2**11 # number of samples in the STFT window

#################### Main script #############################################
# Load the vowel token, resample it to fs and calibrate it to the requested level
x, _ = wavfile_read(fetch_wavfile(token_url, token_file), fs=fs)
x = scale_to_level(x, level)

# The 201-CF IHC-ANF modules simulate all channels at once
models = build_connear(Ncf=201)

print('Simulating population response')
time_elapsed=time()
resp = auditory_model(x, fs, cfs, fiber_type=fiber_type, models=models)
time_elapsed = time() - time_elapsed
print('Simulation finished in ' + '%.2f' % time_elapsed + ' seconds')

F, T, S = sp_sig.spectrogram(x, fs=fs, window=sp_sig.windows.hann(n), noverlap=int(round(n*0.9)),
                             nfft=n*4, mode='magnitude')

#################### Plot the responses ######################################
plt.figure(1, figsize=(12, 5), facecolor='w', edgecolor='k')
plt.subplot(1,2,1)
plt.pcolormesh(T, F, 20*np.log10(S + np.finfo(float).eps), shading='auto')
plt.yscale('log'),plt.ylim(cf_low,cf_high),plt.xlim(0,len(x)/fs)
plt.yticks([200, 500, 1000, 2000, 5000, 10000], ['200', '500', '1000', '2000', '5000', '10000'])
plt.xlabel('Time [s]'),plt.ylabel('Frequency [Hz]')
plt.title('Spectrogram')

plt.subplot(1,2,2)
t = time_axis(resp.an.shape[0], resp.fs)
order = np.argsort(resp.cfs) # CoNNear channels run from high to low CF
plt.pcolormesh(t, resp.cfs[order], resp.an[:, order].T, shading='auto',
               vmin=0, vmax=np.quantile(resp.an, 0.99))
plt.yscale('log'),plt.ylim(cf_low,cf_high),plt.xlim(0,len(x)/fs)
plt.yticks([200, 500, 1000, 2000, 5000, 10000], ['200', '500', '1000', '2000', '5000', '10000'])
plt.xlabel('Time [s]'),plt.ylabel('CF [Hz]')
plt.title('Neurogram')
plt.tight_layout()

plt.show()
