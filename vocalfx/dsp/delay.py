"""
Ring-buffer delay line and the feedback echo built on it.
The echo is the recurrence y[n] = x[n] + g * y[n - D]; the tap heard at the mix
bus is d[n] = y[n - D]. State lives in the ring buffer, not in a cyclic graph.
"""
import torch

# Hard ceiling for feedback gain; the loop diverges at |g| >= 1
MAX_FEEDBACK = 0.6


class DelayLine:
    def __init__(self, max_delay_samples: int, channels: int = 1, device: torch.device = None):
        if device is None:
            device = torch.device('cpu')

        # Headroom past the longest delay so block reads never wrap onto unread data
        self.buffer_size = int(max_delay_samples) + 4096
        self.channels = int(channels)
        self.buffer = torch.zeros(self.channels, self.buffer_size, device=device)
        self.write_ptr = 0
        self.device = device

    def write_block(self, input_block: torch.Tensor):
        """
        Write a (channels, n) block of samples to the delay line.
        Updates write_ptr.
        """
        block_len = input_block.shape[-1]

        # Handle wrap-around writing
        end_ptr = self.write_ptr + block_len

        if end_ptr <= self.buffer_size:
            self.buffer[:, self.write_ptr:end_ptr] = input_block
        else:
            # Split write
            first_chunk = self.buffer_size - self.write_ptr
            self.buffer[:, self.write_ptr:] = input_block[:, :first_chunk]
            self.buffer[:, :end_ptr - self.buffer_size] = input_block[:, first_chunk:]

        self.write_ptr = (self.write_ptr + block_len) % self.buffer_size

    def read_block(self, delay_samples: int, count: int) -> torch.Tensor:
        """
        Read a block of `count` samples from `delay_samples` in the past,
        relative to the current write position.

        Flow per block: read delayed state -> process -> write result.
        """
        start = self.write_ptr - int(delay_samples)
        indices = (torch.arange(count, device=self.device) + start) % self.buffer_size
        return self.buffer[:, indices]


def feedback_delay(signal: torch.Tensor, delay_samples: int, feedback: float) -> torch.Tensor:
    """
    Echo train of `signal` (channels, frames): taps at D, 2D, 3D... with gains
    1, g, g^2... Output has the same length as the input; the caller pads the
    input when the tail should ring out.
    """
    if abs(feedback) >= 1.0:
        raise ValueError(f"feedback gain must be < 1.0 for a stable loop, got {feedback}")
    delay_samples = int(delay_samples)
    if delay_samples <= 0:
        raise ValueError(f"delay_samples must be positive, got {delay_samples}")

    if signal.dim() == 1:
        signal = signal.unsqueeze(0)
    channels, n = signal.shape
    line = DelayLine(delay_samples, channels=channels, device=signal.device)
    out = torch.zeros_like(signal)

    # Blocks no longer than D only ever read samples written by earlier blocks
    for start in range(0, n, delay_samples):
        count = min(delay_samples, n - start)
        tap = line.read_block(delay_samples, count)
        line.write_block(signal[:, start:start + count] + feedback * tap)
        out[:, start:start + count] = tap

    return out
