"""
Example: Minimizing the Rosenbrock function with descentkit

This example compares the quasi-Newton, conjugate gradient and derivative-free
minimizers on the two-dimensional Rosenbrock valley, shows how a callback can
watch (and stop) a run, and minimizes a PyTorch objective using autograd gradients.
"""

import numpy as np
import torch

from descentkit import MinimizerConfig, Problem, create_minimizer
from descentkit.minimize import QuasiNewtonMinimizer
from descentkit.torch import TorchObjective


def rosenbrock(x):
    return (1 - x[0]) ** 2 + 100 * (x[1] - x[0] ** 2) ** 2


def rosenbrock_grad(x):
    return np.array(
        [
            -2 * (1 - x[0]) - 400 * x[0] * (x[1] - x[0] ** 2),
            200 * (x[1] - x[0] ** 2),
        ]
    )


def example_compare_methods():
    """Example: Every minimizer on the same problem."""
    print("=" * 60)
    print("Example 1: Comparing minimizers on Rosenbrock")
    print("=" * 60)

    problem = Problem(fun=rosenbrock, grad=rosenbrock_grad, dim=2)
    x0 = np.array([-1.2, 1.0])
    names = ["bfgs", "dfp", "polak_ribiere", "liu_storey", "fletcher_reeves"]
    # Powell and Nelder-Mead only evaluate the objective.
    names += ["powell", "nelder_mead"]
    for name in names:
        config = MinimizerConfig(name=name, tolerance=1e-8, max_iterations=2000)
        res = create_minimizer(config, initial_guess=x0).minimize(problem)
        print(
            f"{name:>16}: x = {np.array2string(res.x, precision=6)}, "
            f"f = {res.fun:.3e}, nit = {res.nit}, nfev = {res.nfev}, "
            f"njev = {res.njev}, {res.message}"
        )
    print()


def example_anytime_callback():
    """Example: Watching a run and stopping it early."""
    print("=" * 60)
    print("Example 2: Anytime minimization with a callback")
    print("=" * 60)

    problem = Problem(fun=rosenbrock, grad=rosenbrock_grad, dim=2)
    minimizer = QuasiNewtonMinimizer(initial_guess=np.array([-1.2, 1.0]))

    def report(info):
        print(f"  iteration {info.iteration:3d}: f = {info.fun:.6e}, |g| = {info.grad_norm:.3e}")
        if info.fun < 1e-3:
            minimizer.stop()

    minimizer.add_callback(report)
    best = minimizer.learn(problem)
    print(f"Stopped at x = {best.input} ({minimizer.message})")
    print()


def example_torch_objective():
    """Example: Autograd gradients from a PyTorch function."""
    print("=" * 60)
    print("Example 3: Minimizing a PyTorch objective")
    print("=" * 60)

    target = torch.tensor([0.5, -1.5, 2.0], dtype=torch.float64)
    objective = TorchObjective(lambda x: torch.sum((x - target) ** 2) + torch.sum(x**4) / 10)
    config = MinimizerConfig(name="bfgs", tolerance=1e-10)
    res = create_minimizer(config, initial_guess=np.zeros(3)).minimize(objective)
    print(f"Minimizer: x = {res.x}")
    print(f"Objective: {res.fun:.6f} after {res.nit} iterations")
    print()


if __name__ == "__main__":
    example_compare_methods()
    example_anytime_callback()
    example_torch_objective()
    print("All examples completed.")
