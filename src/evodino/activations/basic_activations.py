import numpy as np

def identity_activation(z):
    return z

def relu_activation(z):
    return np.maximum(0.0, z)

def tanh_activation(z):
    return np.tanh(z)

# Derivatives are expressed in terms of the pre-activation 'z'
# and of the already computed activation output 'a'.

def identity_derivative(z, a):
    return np.ones_like(z)

def relu_derivative(z, a):
    return (z > 0).astype(float)

def tanh_derivative(z, a):
    return 1.0 - a * a

activations = {
    "linear"  : identity_activation,
    "identity": identity_activation,
    "relu"    : relu_activation,
    "tanh"    : tanh_activation
    }

activation_derivatives = {
    "linear"  : identity_derivative,
    "identity": identity_derivative,
    "relu"    : relu_derivative,
    "tanh"    : tanh_derivative
    }
