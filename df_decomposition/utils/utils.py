import os


def save_decomposition_results(left, right, factors, tenpy, folderpath):
    """
    save the reference tensors and the cp factors as .npy files.

    factors is the list returned by CP_DF_ALS.get_factor_matrices(), the
    last entry being the weight vector.
    """
    os.makedirs(folderpath, exist_ok=True)
    tenpy.save_tensor_to_file(left, os.path.join(folderpath, 'left.npy'))
    tenpy.save_tensor_to_file(right, os.path.join(folderpath, 'right.npy'))
    for i, A in enumerate(factors[:-1]):
        tenpy.save_tensor_to_file(A, os.path.join(folderpath, f'mat{i}.npy'))
    tenpy.save_tensor_to_file(factors[-1], os.path.join(folderpath, 'weights.npy'))
    tenpy.printf(f"[info] saved decomposition to {folderpath}")
