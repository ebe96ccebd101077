# -*- coding: utf-8 -*-
"""
This script wraps the pretrained CoNNear periphery modules (cochlea, IHC and
ANF stages) behind a single call that the demo scripts use as the external
auditory-nerve model:

    resp = auditory_model(stim, fs, cfs)

The stimulus is a pressure waveform in Pa at any sampling rate. It is
resampled to the 20-kHz rate of the CoNNear modules, embedded in the context
required by the ANF stage and simulated. The response holds the IHC receptor
potential and the ANF firing rate over time for the model channels closest
to the requested characteristic frequencies (CFs).

The model and weight files are not part of this repository; point
CONNEAR_MODELDIR (or the modeldir argument) to the 'connear' directory of
the CoNNear periphery distribution.
"""

import logging
import os
import numpy as np
import tensorflow as tf
import scipy.signal as sp_sig
from fractions import Fraction
from typing import NamedTuple, Optional, Sequence

from tensorflow.keras.models import model_from_json
from tensorflow.keras.utils import CustomObjectScope
from tensorflow.keras.initializers import glorot_uniform

from an_functions import InvalidInputError, n_samples

logger = logging.getLogger(__name__)

MODELDIR = os.environ.get('CONNEAR_MODELDIR', 'CoNNear_periphery/connear/')
MODEL_FS = 20e3 # sampling frequency of all CoNNear modules
CONTEXT_LEFT = 7936 # samples (396.8 ms) - left context of the ANF model
CONTEXT_RIGHT = 256 # samples (12.8 ms) - right context
NENC = 14 # number of layers in the ANF model - the input is padded to a multiple of 2**NENC
# scaling applied to the CoNNear outputs to bring them back to the original representations
IHC_SCALING = 1e1
AN_SCALING = 1e-2
FIBER_TYPES = {'high': 0, 'medium': 1, 'low': 2} # order of the ANF model outputs (HSR, MSR, LSR)


class PeripheryModels(NamedTuple):
    cochlea: tf.keras.Model
    ihc: tf.keras.Model
    anf: tf.keras.Model
    Ncf: int


class ModelResponse(NamedTuple):
    """Output of auditory_model.

    Attributes:
      ihc: IHC receptor potential (V), n_time x n_cf.
      an: ANF instantaneous firing rate (spikes/s), n_time x n_cf.
      cfs: The CFs (Hz) of the simulated model channels.
      fs: Sampling rate (Hz) of ihc and an.
    """
    ihc: np.ndarray
    an: np.ndarray
    cfs: np.ndarray
    fs: float


def load_connear_model(modeldir: str, json_name: str = "/Gmodel.json",
                       weights_name: str =  "/Gmodel.h5",
                       crop: bool = True, name: Optional[str] = None) -> tf.keras.Model:
    """Function to load one portion of a CoNNear model.

    Args:
      modeldir: Where to find the model and weight files
      json_name: The file within modeldir to find the TF model description
      weights_name: The file within modeldir to find the weights data
      crop: Keep the last layer of the model, which crops out the extra context
        provided to the model. Set to False to remove this last layer and pass
        the context on to the next part of the model.
      name: The name for this new model.

    Returns:
      A Tensorflow Model
    """
    logger.debug("Loading %s%s", modeldir, json_name)
    with open(modeldir + json_name, "r") as json_file:
        loaded_model_json = json_file.read()

    with CustomObjectScope({'GlorotUniform': glorot_uniform()}):
        model = model_from_json(loaded_model_json, custom_objects={'tf': tf})
    if name:
        try:
            model.name = name
        except AttributeError: # tensorflow 2 makes the name read-only
            model._name = name
    model.load_weights(modeldir + weights_name)

    if not crop: # for connecting the different modules
        model=model.layers[1]
        if name:
            model=tf.keras.Model(model.layers[0].input, model.layers[-2].output,name=name)
        else:
            model=tf.keras.Model(model.layers[0].input, model.layers[-2].output) # get uncropped output

    return model

def build_connear(modeldir: Optional[str] = None, poles: str = '', Ncf: int = 201) -> PeripheryModels:
    """Function to load the separate pretrained CoNNear modules.

    Args:
      modeldir: From which directory to load the model and weights
      poles: The HL curve to model. If a string is given then the corresponding HI weights are
        loaded for the cochlear model. The default is to model a normal auditory system.
      Ncf: Number of channels of the IHC and ANF modules. The 201-CF modules process
        all cochlear channels at once, the 1-CF modules are run one channel at a time
        (slower for many CFs, but lighter on memory and faster for a few CFs).
    """
    assert(Ncf == 201 or Ncf == 1), "Only the 201- and 1-CF IHC-ANF models can be used channel by channel."
    modeldir = modeldir or MODELDIR
    cf_flag = '' if Ncf == 201 else '_' + str(Ncf) + 'cf'

    ### Cochlea ###
    poles = poles.lower() # make lowercase
    if (not poles) or poles == 'nh':
        weights_name = "/cochlea.h5"
    else:
        assert(os.path.exists(modeldir + "/cochlea_" + poles + ".h5")), "The poles for the selected HI profile do not exist. HI cochlear models are available for the following hearing-loss profiles: Flat25, Flat35, Slope25, Slope35"
        weights_name = "/cochlea_" + poles + ".h5"
    cochlea = load_connear_model(modeldir,json_name="/cochlea.json",weights_name=weights_name,name="cochlea_model",crop=0)
    ### IHC ###
    ihc = load_connear_model(modeldir,json_name="/ihc" + cf_flag + ".json",weights_name="/ihc.h5",name="ihc_model",crop=0)
    ### ANF ###
    anf = load_connear_model(modeldir,json_name="/anf" + cf_flag + ".json",weights_name="/anf.h5",name="anf_model")

    # the pretrained modules are only used for inference
    for model in (cochlea, ihc, anf):
        model.trainable=False
        for l in model.layers:
            l.trainable=False

    logger.info("Loaded CoNNear periphery from %s (poles=%s, Ncf=%d)", modeldir, poles or 'nh', Ncf)
    return PeripheryModels(cochlea, ihc, anf, Ncf)

def load_cfs(modeldir: Optional[str] = None) -> np.ndarray:
    """Load the CFs (Hz) of the CoNNear channels, ordered from high to low."""
    modeldir = modeldir or MODELDIR
    return np.loadtxt(modeldir + '/cf.txt')*1e3

def select_channels(model_cfs: np.ndarray, cfs: Sequence[float]) -> np.ndarray:
    """Return the index of the model channel closest to each requested CF.
    Distances are measured on a logarithmic frequency axis.
    """
    cfs = np.atleast_1d(np.asarray(cfs, dtype=float))
    if cfs.size == 0:
        raise InvalidInputError("at least one CF is required")
    if np.any(cfs <= 0):
        raise InvalidInputError("CFs must be positive")
    dist = np.abs(np.log(np.asarray(model_cfs)[:, np.newaxis]) - np.log(cfs[np.newaxis, :]))
    return np.argmin(dist, axis=0)

def prepare_stimulus(stim: np.ndarray, fs: float, dur_post: float = 0.):
    """Bring a pressure waveform to the input format of the CoNNear modules.

    The stimulus is resampled to MODEL_FS, followed by dur_post seconds of
    silence, embedded between the left and right context of the ANF model and
    zero-padded to a multiple of 2**NENC samples.

    Returns:
      A 2-ple containing:
        x: the model input, of size 1 x number of samples x 1
        n_stim: the number of samples of the response to keep
    """
    stim = np.asarray(stim, dtype=float)
    if stim.ndim == 2 and min(stim.shape) == 1:
        stim = stim.reshape(-1)
    if stim.ndim != 1:
        raise InvalidInputError("stim must be a single waveform, got an array of shape %s" % (stim.shape,))
    if fs <= 0:
        raise InvalidInputError("fs must be positive, got %r" % fs)

    if fs != MODEL_FS:
        ratio = Fraction(MODEL_FS / fs).limit_denominator(1000)
        logger.debug("Resampling stimulus from %g Hz to %g Hz (%d/%d)", fs, MODEL_FS, ratio.numerator, ratio.denominator)
        stim = sp_sig.resample_poly(stim, ratio.numerator, ratio.denominator)
    stim = np.concatenate((stim, np.zeros(n_samples(dur_post, MODEL_FS))))
    n_stim = stim.size

    x = np.zeros(CONTEXT_LEFT + n_stim + CONTEXT_RIGHT)
    x[CONTEXT_LEFT:CONTEXT_LEFT + n_stim] = stim
    if x.size % 2**NENC: # input size needs to be a multiple of 16384 for the ANF model
        Npad = int(np.ceil(x.size/(2**NENC)))*(2**NENC)-x.size
        x = np.pad(x,(0,Npad))
    return x[np.newaxis, :, np.newaxis], n_stim

def auditory_model(stim: np.ndarray, fs: float, cfs: Sequence[float],
                   fiber_type: str = 'high', models: Optional[PeripheryModels] = None,
                   modeldir: Optional[str] = None, model_cfs: Optional[np.ndarray] = None,
                   dur_post: float = 0.) -> ModelResponse:
    """Simulate the IHC and ANF responses to a pressure waveform.

    Args:
      stim: The pressure waveform (Pa).
      fs: Sampling rate of stim (Hz).
      cfs: The requested CFs (Hz); each one is mapped to the closest model channel.
      fiber_type: Spontaneous-rate type of the ANF ('high', 'medium' or 'low').
      models: Periphery modules returned by build_connear. Loaded from modeldir if omitted;
        pass them in when simulating many stimuli.
      modeldir: Directory of the CoNNear model files.
      model_cfs: The CFs of the model channels, loaded from modeldir if omitted.
      dur_post: Silence (s) simulated after the end of the stimulus, to include offset responses.

    Returns:
      A ModelResponse sampled at MODEL_FS.
    """
    if fiber_type not in FIBER_TYPES:
        raise InvalidInputError("fiber_type must be one of %s, got %r" % (", ".join(FIBER_TYPES), fiber_type))
    if model_cfs is None:
        model_cfs = load_cfs(modeldir)
    chans = select_channels(model_cfs, cfs)
    x, n_stim = prepare_stimulus(stim, fs, dur_post=dur_post)
    if models is None:
        models = build_connear(modeldir)
    fiber = FIBER_TYPES[fiber_type]
    logger.debug("Simulating %d channel(s), %s-SR fibers", chans.size, fiber_type)

    vbm = models.cochlea.predict(x) # BM vibration
    if models.Ncf == 201: # use the 201-CF models
        vihc = models.ihc.predict(vbm) # IHC receptor potential
        ranf = models.anf.predict(vihc)[fiber][:, :, chans] # ANF firing rate
        vihc = vihc[:, :, chans]
    else: # use the 1-CF IHC-ANF models, one CF at a time to avoid memory issues
        vihc = np.concatenate([models.ihc.predict(vbm[:, :, [ch]]) for ch in chans], axis=2)
        ranf = np.concatenate([models.anf.predict(vihc[:, :, [i]])[fiber] for i in range(chans.size)], axis=2)

    # omit context and scale back to the original values
    ihc_out = vihc[0, CONTEXT_LEFT:CONTEXT_LEFT + n_stim, :] / IHC_SCALING
    an_out = ranf[0, :n_stim, :] / AN_SCALING # the ANF output is already cropped
    return ModelResponse(ihc_out, an_out, np.asarray(model_cfs)[chans], MODEL_FS)
