"""MEV detection, bundle auction bookkeeping and revenue distribution buffering."""